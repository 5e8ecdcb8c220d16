# Sweep Selection - Selection Engine
# ==================================
"""
Keyword Filtering and Auto-Desire
=================================
Applies the active keyword terms to a unified collection.

Rules:
- No terms: the matching subset is the whole collection, nothing changes
- Terms: a row matches when ANY term matches ANY of its column values
- Every matching row is forced to desired=True (a manual uncheck is
  overridden on the next filter pass) and records the FIRST term, in
  insertion order, that matched it
- Removing all terms shows everything again but leaves desired and
  category flags as they are
- Route and source facets (FacetFilter) narrow the rows handed to the
  filter, so they bound auto-desire too
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from sweep.dictionary.keyword_matcher import Predicate, compile_term
from sweep.dictionary.models import DictionaryType, UnifiedRow

if TYPE_CHECKING:
    from .state_store import SelectionStateStore

logger = logging.getLogger(__name__)


@dataclass
class FilterResult:
    """Outcome of one filter pass."""
    matching: List[UnifiedRow]
    terms: List[str] = field(default_factory=list)
    auto_desired: int = 0

    @property
    def filtered(self) -> bool:
        """True when a keyword filter was in effect."""
        return bool(self.terms)


@dataclass
class FacetFilter:
    """
    Column facets that narrow a collection before the keyword filter.

    route compares case-insensitively with the row's route column, source
    with the row's source system. Empty means no constraint.
    """
    route: str = ""
    source: str = ""

    @property
    def active(self) -> bool:
        return bool(self.route or self.source)

    def matches(self, row: UnifiedRow) -> bool:
        if self.route and (row.get("route") or "").lower() != self.route.lower():
            return False
        if self.source and row.source.value != self.source.lower():
            return False
        return True

    def apply(self, rows: Sequence[UnifiedRow]) -> List[UnifiedRow]:
        if not self.active:
            return list(rows)
        return [row for row in rows if self.matches(row)]

    @staticmethod
    def options(rows: Sequence[UnifiedRow]) -> Dict[str, List[str]]:
        """Distinct route and source values present in a collection."""
        routes = {row.get("route") for row in rows}
        return {
            'route': sorted(r for r in routes if r and r != "NULL"),
            'source': sorted({row.source.value for row in rows}),
        }

    def to_dict(self) -> Dict[str, str]:
        return {'route': self.route, 'source': self.source}


def _row_matches(row: UnifiedRow, predicates: Sequence[Predicate]) -> bool:
    values = row.values.values()
    return any(p(v) for p in predicates for v in values)


def _first_match(row: UnifiedRow, compiled: Sequence[Tuple[str, Predicate]]) -> str:
    for term, predicate in compiled:
        if _row_matches(row, [predicate]):
            return term
    return ""


class SelectionEngine:
    """
    Runs keyword filters and writes auto-desire results to the store.

    Example:
        engine = SelectionEngine(store)
        result = engine.run(DictionaryType.DX, rows, ["breast", "cancer"])
        len(result.matching)
    """

    def __init__(self, store: Optional["SelectionStateStore"] = None):
        self.store = store

    def apply_filter(self, rows: Sequence[UnifiedRow], terms: Sequence[str]) -> List[UnifiedRow]:
        """
        Rows matching any term, in collection order.

        Pure: no row or store state is changed.
        """
        if not terms:
            return list(rows)
        predicates = [compile_term(t) for t in terms]
        return [row for row in rows if _row_matches(row, predicates)]

    def first_match(self, row: UnifiedRow, terms: Sequence[str]) -> str:
        """First term in insertion order that matches the row, or ''."""
        return _first_match(row, [(term, compile_term(term)) for term in terms])

    def auto_desire(self,
                    dictionary_type: DictionaryType,
                    matching: Sequence[UnifiedRow],
                    terms: Sequence[str]) -> int:
        """
        Mark matching rows desired and record the first matching term.

        Returns:
            Number of rows updated
        """
        compiled = [(term, compile_term(term)) for term in terms]
        for row in matching:
            matched = _first_match(row, compiled)
            row.desired = True
            row.keyword_matched = matched or row.keyword_matched
            if self.store is not None:
                self.store.set(
                    dictionary_type,
                    row.stable_key,
                    desired=True,
                    keyword_matched=row.keyword_matched,
                )
        return len(matching)

    def run(self,
            dictionary_type: DictionaryType,
            rows: Sequence[UnifiedRow],
            terms: Sequence[str],
            pending_text: str = "") -> FilterResult:
        """
        Filter with the committed terms plus any pending typed text.

        Pending text narrows the view but only committed terms trigger
        auto-desire.
        """
        all_terms = list(terms)
        pending = (pending_text or "").strip()
        if pending:
            all_terms.append(pending)

        matching = self.apply_filter(rows, all_terms)
        result = FilterResult(matching=matching, terms=all_terms)

        if terms:
            result.auto_desired = self.auto_desire(dictionary_type, matching, all_terms)

        if all_terms:
            logger.debug(
                f"[{dictionary_type.value}] {len(matching)}/{len(rows)} rows match "
                f"{len(all_terms)} term(s)"
            )
        return result

    @staticmethod
    def match_counts(rows: Sequence[UnifiedRow], terms: Sequence[str]) -> Dict[str, int]:
        """How many rows each term matches on its own."""
        counts: Dict[str, int] = {}
        for term in terms:
            predicate = compile_term(term)
            counts[term] = sum(1 for row in rows if _row_matches(row, [predicate]))
        return counts
