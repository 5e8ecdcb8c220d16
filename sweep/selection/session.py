# Sweep Selection - Curation Session
# ==================================
"""
Curation Session
================
Owns everything one user's curation needs: the selection store, keyword
lists, active systems, unified collections and their matching subsets.

Reload Flow:
1. begin_load() bumps the epoch
2. Resolve active systems for every type from the date context
3. Fetch raw files for every type through the loader (in an executor)
4. If a newer load started meanwhile, discard the results
5. apply_load() rebuilds each collection, then re-applies its filter

Nothing is applied until every type has been fetched, so a loader
failure leaves the previous collections and selections untouched.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Union

from sweep.dictionary.models import DictionaryType, RawRow, SourceSystem, StableKey, UnifiedRow
from sweep.dictionary.schemas import SourceFile, files_for
from sweep.dictionary.source_unifier import SourceUnifier
from sweep.dictionary.system_resolver import SystemResolver, to_date

from .engine import FacetFilter, FilterResult, SelectionEngine
from .keywords import ActiveTerms, KeywordSuggestion
from .state_store import SelectionStateStore

logger = logging.getLogger(__name__)


TypeLike = Union[str, DictionaryType]


class RowLoader(Protocol):
    """Anything that can fetch raw rows for a set of dictionary files."""

    def load_files(self, files: Sequence[SourceFile]) -> Dict[str, List[RawRow]]:
        ...


@dataclass
class DateContext:
    """Study window and visit context used to resolve source systems."""
    date_start: Optional[date] = date(2020, 1, 1)
    date_end: Optional[date] = date(2025, 12, 31)
    outpatient: bool = True
    inpatient: bool = True

    def __post_init__(self):
        self.date_start = to_date(self.date_start)
        self.date_end = to_date(self.date_end)

    @classmethod
    def from_settings(cls, settings) -> "DateContext":
        """Default context from a SettingsService."""
        return cls(
            date_start=settings.get("data", "default_date_start"),
            date_end=settings.get("data", "default_date_end"),
            outpatient=settings.get("data", "default_outpatient"),
            inpatient=settings.get("data", "default_inpatient"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date_start': self.date_start.isoformat() if self.date_start else None,
            'date_end': self.date_end.isoformat() if self.date_end else None,
            'outpatient': self.outpatient,
            'inpatient': self.inpatient,
        }


class EventKind(str, Enum):
    """State transitions reported to subscribers."""
    RELOADED = "reloaded"
    FILTERED = "filtered"
    DESIRED = "desired"
    CATEGORY = "category"


@dataclass
class SessionEvent:
    """Notification sent after a state transition."""
    dictionary_type: DictionaryType
    kind: EventKind
    keys: List[StableKey] = field(default_factory=list)


@dataclass
class ReloadResult:
    """Outcome of a reload."""
    success: bool
    epoch: int
    stale: bool = False
    error: Optional[str] = None
    row_counts: Dict[str, int] = field(default_factory=dict)
    active_systems: Dict[str, List[str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'epoch': self.epoch,
            'stale': self.stale,
            'error': self.error,
            'row_counts': self.row_counts,
            'active_systems': self.active_systems,
        }


@dataclass
class SelectionStatus:
    """Counts shown in a dictionary tab's status line."""
    total: int
    visible: int
    desired: int

    def to_dict(self) -> Dict[str, int]:
        return {'total': self.total, 'visible': self.visible, 'desired': self.desired}


class CurationSession:
    """
    Per-user curation state and the operations that change it.

    Example:
        session = CurationSession(CsvRowLoader("data"))
        await session.reload(DateContext(date(2010, 1, 1), date(2024, 1, 1)))
        session.add_keyword("dx", "breast")
        session.status("dx").desired
    """

    def __init__(self,
                 loader: RowLoader,
                 resolver: Optional[SystemResolver] = None,
                 context: Optional[DateContext] = None,
                 types: Optional[Iterable[TypeLike]] = None):
        """
        Args:
            loader: Row source with a load_files(files) method
            resolver: System resolver; default cutovers when None
            context: Initial date context
            types: Dictionary types to curate; all when None
        """
        self.loader = loader
        self.resolver = resolver or SystemResolver()
        self.context = context or DateContext()
        self.types: List[DictionaryType] = [
            DictionaryType.parse(t) for t in (types if types is not None else DictionaryType)
        ]

        self.store = SelectionStateStore()
        self.engine = SelectionEngine(self.store)
        self.unifier = SourceUnifier(self.store)

        self._terms: Dict[DictionaryType, ActiveTerms] = {t: ActiveTerms() for t in DictionaryType}
        self._pending: Dict[DictionaryType, str] = {t: "" for t in DictionaryType}
        self._facets: Dict[DictionaryType, FacetFilter] = {t: FacetFilter() for t in DictionaryType}
        self._systems: Dict[DictionaryType, List[SourceSystem]] = {t: [] for t in DictionaryType}
        self._rows: Dict[DictionaryType, List[UnifiedRow]] = {t: [] for t in DictionaryType}
        self._index: Dict[DictionaryType, Dict[StableKey, UnifiedRow]] = {t: {} for t in DictionaryType}
        self._matching: Dict[DictionaryType, List[UnifiedRow]] = {t: [] for t in DictionaryType}
        self._epoch = 0
        self._subscribers: List[Callable[[SessionEvent], None]] = []

    # =========================================================================
    # Loading
    # =========================================================================

    @property
    def epoch(self) -> int:
        return self._epoch

    def set_context(self, context: DateContext) -> None:
        """Replace the date context; takes effect on the next reload."""
        self.context = context

    def begin_load(self) -> int:
        """Start a new load and return its epoch."""
        self._epoch += 1
        return self._epoch

    def apply_load(self,
                   epoch: int,
                   dictionary_type: TypeLike,
                   systems: Sequence[SourceSystem],
                   raw_files: Mapping[str, Sequence[RawRow]]) -> bool:
        """
        Commit fetched rows for one type.

        Returns:
            False (and nothing changes) when the epoch is stale
        """
        dtype = DictionaryType.parse(dictionary_type)
        if epoch != self._epoch:
            logger.debug(f"[{dtype.value}] Discarding stale load (epoch {epoch}, current {self._epoch})")
            return False

        rows = self.unifier.unify(dtype, systems, raw_files)
        self._systems[dtype] = list(systems)
        self._rows[dtype] = rows
        self._index[dtype] = {row.stable_key: row for row in rows}
        self._refilter(dtype)
        self._emit(dtype, EventKind.RELOADED, [row.stable_key for row in rows])
        return True

    async def reload(self, context: Optional[DateContext] = None) -> ReloadResult:
        """
        Resolve systems, fetch every type's files and apply them.

        Args:
            context: New date context; the current one when None. It
                replaces the session context only when the reload succeeds

        Returns:
            ReloadResult; on failure the previous state and context are kept
        """
        ctx = context if context is not None else self.context
        epoch = self.begin_load()

        resolved = {
            dtype: self.resolver.resolve(dtype, ctx.date_start, ctx.date_end,
                                         ctx.outpatient, ctx.inpatient)
            for dtype in self.types
        }

        loop = asyncio.get_running_loop()
        fetched: Dict[DictionaryType, Mapping[str, Sequence[RawRow]]] = {}
        try:
            for dtype, systems in resolved.items():
                files = files_for(dtype, systems)
                fetched[dtype] = await loop.run_in_executor(None, self.loader.load_files, files)
        except Exception as e:
            logger.error(f"Reload {epoch} failed: {e}")
            return ReloadResult(success=False, epoch=epoch, error=f"Failed to load dictionaries: {e}")

        if epoch != self._epoch:
            logger.info(f"Reload {epoch} superseded by {self._epoch}")
            return ReloadResult(success=False, epoch=epoch, stale=True,
                                error="Superseded by a newer load")

        self.context = ctx
        for dtype, systems in resolved.items():
            self.apply_load(epoch, dtype, systems, fetched[dtype])

        result = ReloadResult(
            success=True,
            epoch=epoch,
            row_counts={t.value: len(self._rows[t]) for t in resolved},
            active_systems={t.value: [s.value for s in v] for t, v in resolved.items()},
        )
        logger.info(f"Reload {epoch} complete: {result.row_counts}")
        return result

    # =========================================================================
    # Keywords
    # =========================================================================

    def add_keyword(self, dictionary_type: TypeLike, term: str) -> bool:
        """Add one term and re-filter. False when blank or duplicate."""
        dtype = DictionaryType.parse(dictionary_type)
        added = self._terms[dtype].add(term)
        if added:
            self._filter_changed(dtype)
        return added

    def add_keywords(self, dictionary_type: TypeLike, text: str) -> List[str]:
        """Add a pasted comma/newline separated list."""
        dtype = DictionaryType.parse(dictionary_type)
        added = self._terms[dtype].add_many(text)
        if added:
            self._filter_changed(dtype)
        return added

    def add_suggestions(self,
                        dictionary_type: TypeLike,
                        suggestions: Iterable[KeywordSuggestion]) -> List[str]:
        """Append suggested keywords in response order."""
        dtype = DictionaryType.parse(dictionary_type)
        added = self._terms[dtype].add_suggestions(suggestions)
        if added:
            logger.info(f"[{dtype.value}] Added {len(added)} suggested keyword(s)")
            self._filter_changed(dtype)
        return added

    def remove_keyword(self, dictionary_type: TypeLike, index: int) -> str:
        """Remove the term at a position. '' and no re-filter when out of range."""
        dtype = DictionaryType.parse(dictionary_type)
        removed = self._terms[dtype].remove(index)
        if removed:
            self._filter_changed(dtype)
        return removed

    def clear_keywords(self, dictionary_type: TypeLike) -> None:
        """Drop every term and the pending text; desired flags are kept."""
        dtype = DictionaryType.parse(dictionary_type)
        self._terms[dtype].clear()
        self._pending[dtype] = ""
        self._filter_changed(dtype)

    def set_pending_text(self, dictionary_type: TypeLike, text: str) -> None:
        """Typed but uncommitted search text."""
        dtype = DictionaryType.parse(dictionary_type)
        self._pending[dtype] = text or ""
        self._filter_changed(dtype)

    # =========================================================================
    # Facets
    # =========================================================================

    def set_facets(self,
                   dictionary_type: TypeLike,
                   route: Optional[str] = None,
                   source: Optional[Union[str, SourceSystem]] = None) -> FacetFilter:
        """
        Narrow the collection by route and/or source system.

        Facets apply before the keyword filter, so auto-desire only reaches
        rows inside them. None leaves a facet as it is, '' clears it.
        """
        dtype = DictionaryType.parse(dictionary_type)
        facets = self._facets[dtype]
        if route is not None:
            facets.route = route.strip()
        if source is not None:
            facets.source = source.value if isinstance(source, SourceSystem) else source.strip().lower()
        self._filter_changed(dtype)
        return facets

    def clear_facets(self, dictionary_type: TypeLike) -> None:
        dtype = DictionaryType.parse(dictionary_type)
        self._facets[dtype] = FacetFilter()
        self._filter_changed(dtype)

    def facets(self, dictionary_type: TypeLike) -> FacetFilter:
        return self._facets[DictionaryType.parse(dictionary_type)]

    def facet_options(self, dictionary_type: TypeLike) -> Dict[str, List[str]]:
        """Route and source values offered for the loaded collection."""
        return FacetFilter.options(self._rows[DictionaryType.parse(dictionary_type)])

    # =========================================================================
    # Row selection
    # =========================================================================

    def set_desired(self, dictionary_type: TypeLike, key: StableKey, desired: bool) -> None:
        dtype = DictionaryType.parse(dictionary_type)
        self.store.set(dtype, key, desired=desired)
        row = self._index[dtype].get(key)
        if row is not None:
            row.desired = bool(desired)
        self._emit(dtype, EventKind.DESIRED, [key])

    def set_category(self, dictionary_type: TypeLike, key: StableKey, category: str) -> None:
        dtype = DictionaryType.parse(dictionary_type)
        category = category or ""
        self.store.set(dtype, key, category=category)
        row = self._index[dtype].get(key)
        if row is not None:
            row.category = category
        self._emit(dtype, EventKind.CATEGORY, [key])

    def select_all_visible(self, dictionary_type: TypeLike) -> int:
        """Mark every row of the matching subset desired."""
        dtype = DictionaryType.parse(dictionary_type)
        keys = []
        for row in self._matching[dtype]:
            row.desired = True
            self.store.set(dtype, row.stable_key, desired=True)
            keys.append(row.stable_key)
        self._emit(dtype, EventKind.DESIRED, keys)
        return len(keys)

    def deselect_all(self, dictionary_type: TypeLike) -> int:
        """Clear desired on every row of the loaded collection."""
        dtype = DictionaryType.parse(dictionary_type)
        keys = [row.stable_key for row in self._rows[dtype]]
        self.store.clear_all_desired(dtype, keys)
        for row in self._rows[dtype]:
            row.desired = False
        self._emit(dtype, EventKind.DESIRED, keys)
        return len(keys)

    # =========================================================================
    # Accessors
    # =========================================================================

    def rows(self, dictionary_type: TypeLike) -> List[UnifiedRow]:
        return list(self._rows[DictionaryType.parse(dictionary_type)])

    def matching(self, dictionary_type: TypeLike) -> List[UnifiedRow]:
        return list(self._matching[DictionaryType.parse(dictionary_type)])

    def active_systems(self, dictionary_type: TypeLike) -> List[SourceSystem]:
        return list(self._systems[DictionaryType.parse(dictionary_type)])

    def terms(self, dictionary_type: TypeLike) -> List[str]:
        return self._terms[DictionaryType.parse(dictionary_type)].as_list()

    def pending_text(self, dictionary_type: TypeLike) -> str:
        return self._pending[DictionaryType.parse(dictionary_type)]

    def match_counts(self, dictionary_type: TypeLike) -> Dict[str, int]:
        """Rows each committed term matches in the loaded collection."""
        dtype = DictionaryType.parse(dictionary_type)
        return self.engine.match_counts(self._rows[dtype], self._terms[dtype].as_list())

    def status(self, dictionary_type: TypeLike) -> SelectionStatus:
        dtype = DictionaryType.parse(dictionary_type)
        return SelectionStatus(
            total=len(self._rows[dtype]),
            visible=len(self._matching[dtype]),
            desired=sum(1 for row in self._rows[dtype] if row.desired),
        )

    # =========================================================================
    # Notifications
    # =========================================================================

    def subscribe(self, callback: Callable[[SessionEvent], None]) -> None:
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[SessionEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _emit(self, dtype: DictionaryType, kind: EventKind, keys: List[StableKey]) -> None:
        event = SessionEvent(dictionary_type=dtype, kind=kind, keys=keys)
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Subscriber failed on {kind.value} event: {e}")

    # =========================================================================
    # Internal
    # =========================================================================

    def _refilter(self, dtype: DictionaryType) -> FilterResult:
        result = self.engine.run(
            dtype,
            self._facets[dtype].apply(self._rows[dtype]),
            self._terms[dtype].as_list(),
            self._pending[dtype],
        )
        self._matching[dtype] = result.matching
        return result

    def _filter_changed(self, dtype: DictionaryType) -> None:
        result = self._refilter(dtype)
        self._emit(dtype, EventKind.FILTERED, [row.stable_key for row in result.matching])
