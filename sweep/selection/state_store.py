# Sweep Selection - State Store
# =============================
"""
Selection State Store
=====================
Remembers the user's desired/category/keyword-matched values per row,
keyed by dictionary type and stable row key.

The store outlives any single data load: unified collections are rebuilt
on every reload and rehydrated from here. Entries are created lazily on
the first write and are only changed by explicit writes; nothing is
dropped when rows disappear from a reload.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sweep.dictionary.models import DictionaryType, StableKey

logger = logging.getLogger(__name__)


@dataclass
class SelectionEntry:
    """Recorded values for one row. None means never set."""
    desired: Optional[bool] = None
    category: Optional[str] = None
    keyword_matched: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SelectionStateStore:
    """
    Per-session store of row selection state.

    Example:
        store = SelectionStateStore()
        store.set(DictionaryType.DX, key, desired=True, category="obesity")
        store.get(DictionaryType.DX, key).desired   # True
    """

    def __init__(self):
        self._entries: Dict[Tuple[DictionaryType, StableKey], SelectionEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item: Tuple[DictionaryType, StableKey]) -> bool:
        return item in self._entries

    def get(self, dictionary_type: DictionaryType, key: StableKey) -> Optional[SelectionEntry]:
        """Return the entry for a row, or None when nothing was recorded."""
        return self._entries.get((dictionary_type, key))

    def set(self,
            dictionary_type: DictionaryType,
            key: StableKey,
            desired: Optional[bool] = None,
            category: Optional[str] = None,
            keyword_matched: Optional[str] = None) -> SelectionEntry:
        """
        Record values for a row, leaving unspecified fields as they were.

        Returns:
            The stored entry
        """
        entry = self._entries.get((dictionary_type, key))
        if entry is None:
            entry = SelectionEntry()
            self._entries[(dictionary_type, key)] = entry
        if desired is not None:
            entry.desired = bool(desired)
        if category is not None:
            entry.category = category
        if keyword_matched is not None:
            entry.keyword_matched = keyword_matched
        return entry

    def clear_all_desired(self, dictionary_type: DictionaryType, keys: Iterable[StableKey]) -> int:
        """
        Set desired=False for the given keys only.

        Categories and keyword matches are kept.

        Returns:
            Number of keys cleared
        """
        count = 0
        for key in keys:
            self.set(dictionary_type, key, desired=False)
            count += 1
        logger.debug(f"Cleared desired on {count} {dictionary_type.value} rows")
        return count

    def keys_for(self, dictionary_type: DictionaryType) -> List[StableKey]:
        """Keys with a recorded entry for a type."""
        return [k for (t, k) in self._entries if t == dictionary_type]

    def desired_keys(self, dictionary_type: DictionaryType) -> List[StableKey]:
        return [
            k for (t, k), entry in self._entries.items()
            if t == dictionary_type and entry.desired
        ]

    def snapshot(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Plain-dict copy of every entry, grouped by type."""
        result: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for (dtype, key), entry in self._entries.items():
            result.setdefault(dtype.value, {})[str(key)] = entry.to_dict()
        return result
