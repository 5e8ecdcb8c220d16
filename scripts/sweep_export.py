#!/usr/bin/env python
# Sweep - Batch Curation Export
# =============================
# Loads dictionaries, applies keywords and writes ss-* export files
"""
Batch Sweep & Specify export.

This script runs the curation pipeline without a user interface:
1. Resolve source systems for the study window and visit context
2. Load and unify the dictionary CSV files
3. Apply the keywords (matching rows are marked desired)
4. Write one ss-* CSV per source system plus the search-terms manifest

Usage:
    python scripts/sweep_export.py --type dx --keyword "breast, *oma"
    python scripts/sweep_export.py --start 2010-01-01 --end 2024-12-31 --no-inpatient
    python scripts/sweep_export.py --project campbell-endometrial-cancer-1 --out-dir exports
    python scripts/sweep_export.py --type medication --route oral --keyword metformin
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sweep.data import CsvRowLoader
from sweep.dictionary import DictionaryType, to_date
from sweep.errors import ExportError
from sweep.export import write_exports
from sweep.selection import CurationSession, DateContext
from sweep.settings import get_settings_service

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _iso_date(value: str) -> date:
    parsed = to_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sweep & Specify: batch dictionary curation export",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/sweep_export.py --type dx --keyword breast       # One type, one keyword
  python scripts/sweep_export.py --keyword "cancer, *oma"          # Pasted list, all types
  python scripts/sweep_export.py --start 2012-01-01 --no-inpatient # Custom context
        """
    )

    parser.add_argument(
        "--data-dir",
        help="Directory containing dictionary-*.csv files (default: settings)"
    )

    parser.add_argument(
        "--start",
        type=_iso_date,
        help="Study start date, YYYY-MM-DD"
    )

    parser.add_argument(
        "--end",
        type=_iso_date,
        help="Study end date, YYYY-MM-DD"
    )

    parser.add_argument("--outpatient", dest="outpatient", action="store_true",
                        help="Include outpatient systems")
    parser.add_argument("--no-outpatient", dest="outpatient", action="store_false",
                        help="Exclude outpatient systems")
    parser.add_argument("--inpatient", dest="inpatient", action="store_true",
                        help="Include inpatient systems")
    parser.add_argument("--no-inpatient", dest="inpatient", action="store_false",
                        help="Exclude inpatient systems")
    parser.set_defaults(outpatient=None, inpatient=None)

    parser.add_argument(
        "--type",
        action="append",
        choices=[t.value for t in DictionaryType],
        help="Dictionary type to export (repeatable; default: all)"
    )

    parser.add_argument(
        "--keyword",
        action="append",
        help="Keyword or comma separated list, applied to every selected type (repeatable)"
    )

    parser.add_argument(
        "--route",
        help="Only medication rows with this route, e.g. ORAL"
    )

    parser.add_argument(
        "--source-system",
        help="Only medication rows from this source system, e.g. epic"
    )

    parser.add_argument(
        "--project",
        help="Project name used as file name prefix (default: settings)"
    )

    parser.add_argument(
        "--out-dir",
        help="Output directory (default: settings)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser


def run_export(args: argparse.Namespace) -> int:
    """Run the pipeline for parsed arguments. Returns the exit code."""
    settings = get_settings_service()

    context = DateContext.from_settings(settings)
    if args.start is not None:
        context.date_start = args.start
    if args.end is not None:
        context.date_end = args.end
    if args.outpatient is not None:
        context.outpatient = args.outpatient
    if args.inpatient is not None:
        context.inpatient = args.inpatient

    data_dir = args.data_dir or settings.get("data", "data_dir")
    out_dir = Path(args.out_dir) if args.out_dir else settings.get("export", "export_dir")
    project_name = args.project if args.project is not None else settings.get("export", "project_name")
    types: List[str] = args.type or [t.value for t in DictionaryType]

    session = CurationSession(
        CsvRowLoader(data_dir),
        resolver=settings.create_resolver(),
        context=context,
        types=types,
    )

    logger.info(f"Loading {', '.join(types)} from {data_dir} ({context.to_dict()})")
    result = asyncio.run(session.reload())
    if not result.success:
        logger.error(f"Reload failed: {result.error}")
        return 1

    if (args.route or args.source_system) and DictionaryType.MEDICATION.value in types:
        session.set_facets(DictionaryType.MEDICATION, route=args.route, source=args.source_system)

    for keyword in args.keyword or []:
        for dictionary_type in types:
            session.add_keywords(dictionary_type, keyword)

    exit_code = 0
    for dictionary_type in types:
        rows = session.matching(dictionary_type)
        status = session.status(dictionary_type)
        logger.info(
            f"[{dictionary_type}] {status.visible} of {status.total} rows shown, "
            f"{status.desired} desired"
        )
        if not rows:
            logger.warning(f"[{dictionary_type}] Nothing to export")
            continue

        try:
            export = write_exports(
                rows,
                dictionary_type,
                out_dir,
                project_name=project_name,
                terms=session.terms(dictionary_type),
                date_start=context.date_start,
                date_end=context.date_end,
                active_systems=session.active_systems(dictionary_type),
            )
        except ExportError as e:
            logger.error(str(e))
            exit_code = 1
            continue

        for path in export.files:
            print(path)
        if export.manifest:
            print(export.manifest)

    return exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    return run_export(args)


if __name__ == "__main__":
    sys.exit(main())
