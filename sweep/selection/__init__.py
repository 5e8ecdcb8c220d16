# Sweep Selection Module
# ======================
"""
Keyword search and row selection over unified dictionary collections.

Components:
- SelectionStateStore: Per-row desired/category/keyword_matched memory
- ActiveTerms: Ordered, de-duplicated keyword list per dictionary type
- SelectionEngine: Keyword filter plus auto-desire
- FacetFilter: Route and source narrowing applied before keywords
- CurationSession: Reload orchestration and user operations
"""

from .state_store import SelectionEntry, SelectionStateStore
from .keywords import ActiveTerms, KeywordSuggestion, PASTE_SPLIT_RE
from .engine import FacetFilter, FilterResult, SelectionEngine
from .session import (
    CurationSession,
    DateContext,
    EventKind,
    ReloadResult,
    SelectionStatus,
    SessionEvent,
)


__all__ = [
    # State Store
    "SelectionEntry",
    "SelectionStateStore",

    # Keywords
    "ActiveTerms",
    "KeywordSuggestion",
    "PASTE_SPLIT_RE",

    # Engine
    "FacetFilter",
    "FilterResult",
    "SelectionEngine",

    # Session
    "CurationSession",
    "DateContext",
    "EventKind",
    "ReloadResult",
    "SelectionStatus",
    "SessionEvent",
]
