# Sweep Dictionary - Keyword Matcher
# ==================================
"""
Compiles keyword terms into case-insensitive string predicates.

Leading and trailing `*` are accepted as wildcard markers but every form
("ovar*", "*itis", "*card*", "breast") matches by plain substring
containment, the same as a SQL `LIKE '%term%'`. A term that is empty once
the markers are stripped matches nothing.
"""

from typing import Callable

Predicate = Callable[[str], bool]


def _never(value: str) -> bool:
    return False


def core_of(term: str) -> str:
    """Lower-case, trim and strip wildcard markers."""
    return (term or "").lower().strip().strip("*")


def is_wildcard(term: str) -> bool:
    """True when the term was entered with a `*` marker."""
    return "*" in (term or "")


def compile_term(term: str) -> Predicate:
    """
    Build a match predicate for a keyword term.

    Candidates are lower-cased before the containment check.
    """
    core = core_of(term)
    if not core:
        return _never

    def matches(value: str) -> bool:
        return core in (value or "").lower()

    return matches
