# Sweep Selection - Active Terms
# ==============================
"""
Ordered keyword lists per dictionary type.

Insertion order matters: when a row matches several terms, the first
term added is recorded as the match. Terms arrive from manual entry,
pasted lists (split on commas and newlines) and keyword-suggestion
batches (appended in response order); all are treated alike.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List

logger = logging.getLogger(__name__)

PASTE_SPLIT_RE = re.compile(r"[,\n]+")


@dataclass
class KeywordSuggestion:
    """A candidate term from the keyword-suggestion provider."""
    keyword: str
    category: str = ""


class ActiveTerms:
    """
    Case-insensitively unique, insertion-ordered keyword list.

    Example:
        terms = ActiveTerms()
        terms.add("breast")
        terms.add_many("cancer, *oma")
        list(terms)   # ["breast", "cancer", "*oma"]
    """

    def __init__(self, terms: Iterable[str] = ()):
        self._terms: List[str] = []
        for term in terms:
            self.add(term)

    def __len__(self) -> int:
        return len(self._terms)

    def __iter__(self) -> Iterator[str]:
        return iter(self._terms)

    def __bool__(self) -> bool:
        return bool(self._terms)

    def __contains__(self, term: str) -> bool:
        lowered = (term or "").strip().lower()
        return any(t.lower() == lowered for t in self._terms)

    def as_list(self) -> List[str]:
        return list(self._terms)

    def add(self, term: str) -> bool:
        """
        Append a term.

        Returns:
            False when the term is blank or already present
        """
        cleaned = (term or "").replace(",", "").strip()
        if not cleaned:
            return False
        if cleaned in self:
            logger.debug(f"Keyword '{cleaned}' already added")
            return False
        self._terms.append(cleaned)
        return True

    def add_many(self, text: str) -> List[str]:
        """Split pasted text on commas/newlines and add each piece."""
        added = []
        for piece in PASTE_SPLIT_RE.split(text or ""):
            if self.add(piece):
                added.append(piece.strip())
        return added

    def add_suggestions(self, suggestions: Iterable[KeywordSuggestion]) -> List[str]:
        """Append suggested keywords in the order the provider returned them."""
        added = []
        for suggestion in suggestions:
            keyword = (suggestion.keyword or "").strip().lower()
            if self.add(keyword):
                added.append(keyword)
        return added

    def remove(self, index: int) -> str:
        """Remove and return the term at a position; '' when out of range."""
        if not 0 <= index < len(self._terms):
            return ""
        return self._terms.pop(index)

    def clear(self) -> None:
        self._terms = []
