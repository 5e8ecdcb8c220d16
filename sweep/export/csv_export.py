# Sweep Export - CSV Export
# =========================
"""
CSV export of curated rows and the search-terms manifest.

Exported Files:
- [project-]ss-<type>-<source>.csv: one per source system in the rows
- [project-]ss-dx.csv: diagnoses are always a single file
- [project-]ss-<type>-search-terms.csv: every keyword with its match
  count, so the search can be reproduced later

Data files carry the raw data columns followed by desired (TRUE/FALSE),
category and keyword_matched.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from sweep.dictionary.keyword_matcher import is_wildcard
from sweep.dictionary.models import RESERVED_COLUMNS, DictionaryType, SourceSystem, UnifiedRow
from sweep.errors import ExportError
from sweep.selection.engine import SelectionEngine

logger = logging.getLogger(__name__)


MANIFEST_COLUMNS = [
    "keyword",
    "dictionary_type",
    "is_wildcard",
    "match_count",
    "project_name",
    "date_start",
    "date_end",
    "active_systems",
    "exported_at",
]


@dataclass
class ExportResult:
    """Files written by one export."""
    dictionary_type: str
    files: List[Path] = field(default_factory=list)
    row_count: int = 0
    manifest: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dictionary_type': self.dictionary_type,
            'files': [str(p) for p in self.files],
            'row_count': self.row_count,
            'manifest': str(self.manifest) if self.manifest else None,
        }


def _flag(value: bool) -> str:
    return "TRUE" if value else "FALSE"


def _date_text(value: Union[date, str, None]) -> str:
    if value is None:
        return ""
    return value.isoformat() if isinstance(value, date) else str(value)


def build_export_frame(rows: Sequence[UnifiedRow], desired_only: bool = False) -> pd.DataFrame:
    """
    Tabulate rows for export.

    Data columns are the ordered union of the rows' columns with the
    selection columns always last.
    """
    if desired_only:
        rows = [row for row in rows if row.desired]

    data_columns: List[str] = []
    seen = set()
    for row in rows:
        for col in row.values:
            if col not in seen and col not in RESERVED_COLUMNS:
                seen.add(col)
                data_columns.append(col)

    records = []
    for row in rows:
        record = {col: row.values.get(col, "") for col in data_columns}
        record["desired"] = _flag(row.desired)
        record["category"] = row.category
        record["keyword_matched"] = row.keyword_matched
        records.append(record)

    return pd.DataFrame(records, columns=data_columns + list(RESERVED_COLUMNS), dtype=str)


def export_filename(dictionary_type: Union[str, DictionaryType],
                    source: Union[str, SourceSystem, None] = None,
                    project_name: str = "") -> str:
    """[project-]ss-<type>[-<source>].csv"""
    dtype = DictionaryType.parse(dictionary_type)
    prefix = f"{project_name.strip()}-" if project_name and project_name.strip() else ""
    if source is None or dtype == DictionaryType.DX:
        return f"{prefix}ss-{dtype.value}.csv"
    source_value = source.value if isinstance(source, SourceSystem) else str(source)
    return f"{prefix}ss-{dtype.value}-{source_value}.csv"


def manifest_filename(dictionary_type: Union[str, DictionaryType], project_name: str = "") -> str:
    dtype = DictionaryType.parse(dictionary_type)
    prefix = f"{project_name.strip()}-" if project_name and project_name.strip() else ""
    return f"{prefix}ss-{dtype.value}-search-terms.csv"


def group_by_source(rows: Sequence[UnifiedRow]) -> Dict[SourceSystem, List[UnifiedRow]]:
    """Split rows by source system, keeping first-seen source order."""
    grouped: Dict[SourceSystem, List[UnifiedRow]] = {}
    for row in rows:
        grouped.setdefault(row.source, []).append(row)
    return grouped


def build_manifest_frame(terms: Sequence[str],
                         dictionary_type: Union[str, DictionaryType],
                         rows: Sequence[UnifiedRow],
                         project_name: str = "",
                         date_start: Union[date, str, None] = None,
                         date_end: Union[date, str, None] = None,
                         active_systems: Sequence[Union[str, SourceSystem]] = (),
                         exported_at: Optional[datetime] = None) -> pd.DataFrame:
    """
    One manifest line per keyword.

    Args:
        terms: Committed keywords, in insertion order
        rows: Exported rows; match_count is counted against these
    """
    dtype = DictionaryType.parse(dictionary_type)
    counts = SelectionEngine.match_counts(rows, terms)
    stamp = (exported_at or datetime.now(timezone.utc)).isoformat()
    systems = "; ".join(s.value if isinstance(s, SourceSystem) else str(s) for s in active_systems)

    records = [
        {
            "keyword": term,
            "dictionary_type": dtype.value,
            "is_wildcard": _flag(is_wildcard(term)),
            "match_count": counts.get(term, 0),
            "project_name": project_name or "",
            "date_start": _date_text(date_start),
            "date_end": _date_text(date_end),
            "active_systems": systems,
            "exported_at": stamp,
        }
        for term in terms
    ]
    return pd.DataFrame(records, columns=MANIFEST_COLUMNS)


def to_csv_text(frame: pd.DataFrame) -> str:
    """Serialize a frame the way exported files are written."""
    return frame.to_csv(index=False, lineterminator="\n")


def write_exports(rows: Sequence[UnifiedRow],
                  dictionary_type: Union[str, DictionaryType],
                  out_dir: Union[str, Path],
                  project_name: str = "",
                  terms: Sequence[str] = (),
                  date_start: Union[date, str, None] = None,
                  date_end: Union[date, str, None] = None,
                  active_systems: Sequence[Union[str, SourceSystem]] = (),
                  desired_only: bool = False) -> ExportResult:
    """
    Write data file(s) and, when keywords exist, the manifest.

    Raises:
        ExportError: When there are no rows or the directory is unwritable
    """
    dtype = DictionaryType.parse(dictionary_type)
    export_rows = [row for row in rows if row.desired] if desired_only else list(rows)
    if not export_rows:
        raise ExportError(f"No {dtype.value} rows to export")

    out_path = Path(out_dir)
    result = ExportResult(dictionary_type=dtype.value, row_count=len(export_rows))

    if dtype == DictionaryType.DX:
        batches = {None: export_rows}
    else:
        batches = group_by_source(export_rows)

    try:
        out_path.mkdir(parents=True, exist_ok=True)
        for source, batch in batches.items():
            target = out_path / export_filename(dtype, source, project_name)
            target.write_text(to_csv_text(build_export_frame(batch)), encoding="utf-8")
            result.files.append(target)
            logger.info(f"[EXPORT] Wrote {len(batch)} rows to {target.name}")

        if terms:
            manifest = build_manifest_frame(
                terms, dtype, export_rows,
                project_name=project_name,
                date_start=date_start,
                date_end=date_end,
                active_systems=active_systems,
            )
            target = out_path / manifest_filename(dtype, project_name)
            target.write_text(to_csv_text(manifest), encoding="utf-8")
            result.manifest = target
            logger.info(f"[EXPORT] Wrote {len(terms)} search terms to {target.name}")
    except OSError as e:
        raise ExportError(f"Could not write {dtype.value} export to {out_path}: {e}") from e

    return result
