# Sweep Export Module
"""
CSV files for downstream analysis scripts plus the search-terms manifest.
"""

from .csv_export import (
    ExportResult,
    MANIFEST_COLUMNS,
    build_export_frame,
    build_manifest_frame,
    export_filename,
    group_by_source,
    manifest_filename,
    to_csv_text,
    write_exports,
)

__all__ = [
    "ExportResult",
    "MANIFEST_COLUMNS",
    "build_export_frame",
    "build_manifest_frame",
    "export_filename",
    "group_by_source",
    "manifest_filename",
    "to_csv_text",
    "write_exports",
]
