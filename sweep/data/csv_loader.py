# Sweep - Dictionary CSV Loader
# =============================
# Reads dictionary-*.csv exports into raw rows
"""
Row source loader for dictionary CSV files.

Files are read with pandas as plain strings (no type inference, empty
cells stay ""), a UTF-8 BOM is stripped, and parsed files are cached
until invalidated. A file that cannot be read yields an empty row list
and a failed LoadResult; it never aborts the other files.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from sweep.dictionary.schemas import SourceFile
from sweep.errors import LoadError

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Result of loading one dictionary file."""
    success: bool
    file_id: str
    rows: List[Dict[str, str]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)
    error: Optional[str] = None
    from_cache: bool = False
    processing_time_seconds: float = 0.0

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'file_id': self.file_id,
            'row_count': self.row_count,
            'columns': self.columns,
            'error': self.error,
            'from_cache': self.from_cache,
            'processing_time_seconds': self.processing_time_seconds
        }


class CsvRowLoader:
    """
    Loads raw dictionary rows from a data directory.

    Example:
        loader = CsvRowLoader("data")
        result = loader.load("dictionary-dx.csv")
        if result.success:
            print(f"{result.row_count} rows")
    """

    # Encodings to try, in order
    ENCODINGS = ['utf-8-sig', 'latin-1']

    def __init__(self, data_dir: Union[str, Path] = "data"):
        """
        Args:
            data_dir: Directory holding dictionary-*.csv files
        """
        self.data_dir = Path(data_dir)
        self._cache: Dict[str, LoadResult] = {}

    def load(self, source: Union[str, SourceFile]) -> LoadResult:
        """
        Load one file by id or declaration.

        Returns:
            LoadResult; rows is empty when success is False
        """
        file_id = source.file_id if isinstance(source, SourceFile) else str(source)

        cached = self._cache.get(file_id)
        if cached is not None:
            return LoadResult(
                success=True,
                file_id=file_id,
                rows=cached.rows,
                columns=cached.columns,
                from_cache=True,
            )

        start_time = datetime.now()
        path = self.data_dir / file_id
        if not path.exists():
            return self._failed(LoadError(file_id, f"File not found: {path}"))

        df = None
        last_error = None
        for encoding in self.ENCODINGS:
            try:
                df = pd.read_csv(
                    path,
                    dtype=str,
                    keep_default_na=False,
                    encoding=encoding,
                    skip_blank_lines=True,
                    on_bad_lines='warn',
                )
                break
            except UnicodeDecodeError as e:
                last_error = str(e)
                continue
            except (pd.errors.ParserError, pd.errors.EmptyDataError, OSError) as e:
                last_error = str(e)
                break

        if df is None:
            return self._failed(LoadError(file_id, f"Failed to read CSV: {last_error}"))

        df.columns = [str(c).lstrip('\ufeff').strip() for c in df.columns]
        rows = df.to_dict(orient='records')
        processing_time = (datetime.now() - start_time).total_seconds()

        result = LoadResult(
            success=True,
            file_id=file_id,
            rows=rows,
            columns=list(df.columns),
            processing_time_seconds=processing_time,
        )
        self._cache[file_id] = result
        logger.info(f"[DATA] Parsed {file_id}: {len(rows)} rows, columns: {', '.join(result.columns)}")
        return result

    def _failed(self, error: LoadError) -> LoadResult:
        logger.warning(f"[DATA] {error}")
        return LoadResult(success=False, file_id=error.file_id, error=str(error))

    def load_files(self, files: Sequence[Union[str, SourceFile]]) -> Dict[str, List[Dict[str, str]]]:
        """
        Load several files for unification.

        Failed files map to an empty row list.
        """
        loaded: Dict[str, List[Dict[str, str]]] = {}
        for source in files:
            result = self.load(source)
            loaded[result.file_id] = result.rows
        return loaded

    def invalidate(self, file_id: Optional[str] = None) -> None:
        """Drop one cached file, or all of them."""
        if file_id is None:
            self._cache.clear()
        else:
            self._cache.pop(file_id, None)

    def available_files(self) -> List[str]:
        """dictionary-*.csv files present in the data directory."""
        if not self.data_dir.exists():
            return []
        return sorted(p.name for p in self.data_dir.glob("dictionary-*.csv"))
