"""
Tests for keyword term compilation.
"""

import pytest

from sweep.dictionary import compile_term, core_of, is_wildcard


class TestCompileTerm:
    """Containment semantics for plain and wildcard terms."""

    def test_suffix_wildcard(self):
        assert compile_term("*itis")("arthritis") is True

    def test_prefix_wildcard(self):
        assert compile_term("ovar*")("ovarian") is True

    def test_only_stars_never_matches(self):
        assert compile_term("***")("anything") is False

    def test_blank_never_matches(self):
        assert compile_term("   ")("anything") is False
        assert compile_term("")("") is False

    def test_case_insensitive(self):
        assert compile_term("Breast")("MALIGNANT NEOPLASM OF BREAST") is True

    @pytest.mark.parametrize("term", ["ovar*", "*ovar", "*ovar*", "ovar"])
    def test_all_forms_are_containment(self, term):
        """Markers do not anchor the match."""
        predicate = compile_term(term)
        assert predicate("neoplasm of ovary") is True
        assert predicate("cystovarian") is True
        assert predicate("ova") is False

    def test_none_value(self):
        assert compile_term("x")(None) is False


class TestTermHelpers:
    """core_of / is_wildcard."""

    def test_core_of(self):
        assert core_of("  *Card* ") == "card"
        assert core_of("**") == ""

    def test_is_wildcard(self):
        assert is_wildcard("*oma") is True
        assert is_wildcard("oma") is False
