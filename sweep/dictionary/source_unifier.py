# Sweep Dictionary - Source Unifier
# =================================
"""
Merges raw per-file rows into one unified collection per dictionary type.

Unification Flow:
1. Walk the declared files serving the active systems, in declared order
2. Walk each file's rows in file order (no sorting)
3. Drop rows whose vocabulary (dx) or source_db tag (harmonized files)
   names a system that is not active
4. Key each row by (file id, position in file)
5. Rehydrate desired/category/keyword_matched from the selection store

A file absent from the input (failed or skipped load) contributes no
rows; the remaining files are still unified.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence, Set, Union

from .models import DictionaryType, RawRow, SourceSystem, StableKey, UnifiedRow
from .schemas import VOCABULARY_SYSTEMS, SourceFile, files_for

if TYPE_CHECKING:
    from sweep.selection.state_store import SelectionStateStore

logger = logging.getLogger(__name__)


class SourceUnifier:
    """
    Builds UnifiedRow collections from raw dictionary rows.

    Example:
        unifier = SourceUnifier(store)
        rows = unifier.unify("lab", [SourceSystem.EPIC], {"dictionary-lab.csv": raw})
    """

    def __init__(self, store: Optional["SelectionStateStore"] = None):
        """
        Args:
            store: Selection state used to rehydrate rows; None means defaults
        """
        self.store = store
        self._drift_reported: Set[str] = set()

    def unify(self,
              dictionary_type: Union[str, DictionaryType],
              active_systems: Sequence[SourceSystem],
              raw_rows_by_file: Mapping[str, Sequence[RawRow]]) -> List[UnifiedRow]:
        """
        Unify raw rows for one dictionary type.

        Args:
            dictionary_type: Type being unified
            active_systems: Output of SystemResolver for this type
            raw_rows_by_file: file id -> rows in file order

        Returns:
            New list of UnifiedRow in (file order, row order)
        """
        dtype = DictionaryType.parse(dictionary_type)
        active = list(active_systems)
        unified: List[UnifiedRow] = []
        used_files: List[str] = []

        for source_file in files_for(dtype, active):
            raw_rows = raw_rows_by_file.get(source_file.file_id)
            if raw_rows is None:
                logger.warning(f"[{dtype.value}] No data for {source_file.file_id}")
                continue

            used_files.append(source_file.file_id)
            if raw_rows:
                self._check_drift(source_file, raw_rows[0])

            for ordinal, raw in enumerate(raw_rows):
                source = self._attribute(source_file, raw, active)
                if source is None:
                    continue
                unified.append(self._build_row(dtype, source_file, ordinal, raw, source))

        logger.info(
            f"[{dtype.value}] Unified {len(unified)} rows from "
            f"{', '.join(used_files) or 'no files'}"
        )
        return unified

    def _attribute(self,
                   source_file: SourceFile,
                   raw: RawRow,
                   active: Sequence[SourceSystem]) -> Optional[SourceSystem]:
        """Pick the row's source system, or None when the row is filtered out."""
        if source_file.vocabulary_column:
            vocab = (raw.get(source_file.vocabulary_column) or "").strip().upper()
            system = VOCABULARY_SYSTEMS.get(vocab)
            if system is not None:
                return system if system in active else None

        elif source_file.source_column:
            tag = (raw.get(source_file.source_column) or "").strip().lower()
            if tag:
                try:
                    system = SourceSystem(tag)
                except ValueError:
                    return None
                return system if system in active else None

        # Untagged row: first active system the file serves
        for system in source_file.systems:
            if system in active:
                return system
        return source_file.systems[0]

    def _build_row(self,
                   dtype: DictionaryType,
                   source_file: SourceFile,
                   ordinal: int,
                   raw: RawRow,
                   source: SourceSystem) -> UnifiedRow:
        values: Dict[str, str] = {col: _as_text(raw.get(col)) for col in source_file.columns}
        for col, value in raw.items():
            if col not in values:
                values[col] = _as_text(value)

        key = StableKey(source_file.file_id, ordinal)
        row = UnifiedRow(
            values=values,
            source=source,
            stable_key=key,
            category=values.get("category", ""),
        )

        entry = self.store.get(dtype, key) if self.store is not None else None
        if entry is not None:
            if entry.desired is not None:
                row.desired = entry.desired
            if entry.category is not None:
                row.category = entry.category
            if entry.keyword_matched is not None:
                row.keyword_matched = entry.keyword_matched
        return row

    def _check_drift(self, source_file: SourceFile, sample: RawRow) -> None:
        """Warn once per file when declared columns are missing from the data."""
        if source_file.file_id in self._drift_reported:
            return
        missing = [c for c in source_file.columns if c not in sample]
        extra = [c for c in sample if c not in source_file.columns]
        if missing or extra:
            self._drift_reported.add(source_file.file_id)
            logger.warning(
                f"Schema drift in {source_file.file_id}: "
                f"missing={missing or '-'} undeclared={extra or '-'}"
            )


def _as_text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
