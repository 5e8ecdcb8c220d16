# Sweep Dictionary Module
# =======================
"""
Dictionary resolution and unification.

Components:
- SystemResolver: Date range + visit context -> active source systems
- SourceUnifier: Raw per-file rows -> one keyed, annotated collection
- compile_term: Keyword term -> case-insensitive containment predicate
- SOURCE_FILES: Declared column layout of every dictionary file
"""

from .models import (
    DictionaryType,
    SourceSystem,
    StableKey,
    UnifiedRow,
    RawRow,
    RESERVED_COLUMNS,
)

from .schemas import (
    SourceFile,
    SOURCE_FILES,
    VOCABULARY_SYSTEMS,
    files_for,
    get_source_file,
    supported_systems,
)

from .system_resolver import (
    SystemResolver,
    EPIC_GOLIVE,
    ICD10_START,
    to_date,
)

from .source_unifier import SourceUnifier

from .keyword_matcher import (
    compile_term,
    core_of,
    is_wildcard,
)


__all__ = [
    # Models
    "DictionaryType",
    "SourceSystem",
    "StableKey",
    "UnifiedRow",
    "RawRow",
    "RESERVED_COLUMNS",

    # Schemas
    "SourceFile",
    "SOURCE_FILES",
    "VOCABULARY_SYSTEMS",
    "files_for",
    "get_source_file",
    "supported_systems",

    # System Resolver
    "SystemResolver",
    "EPIC_GOLIVE",
    "ICD10_START",
    "to_date",

    # Source Unifier
    "SourceUnifier",

    # Keyword Matcher
    "compile_term",
    "core_of",
    "is_wildcard",
]
