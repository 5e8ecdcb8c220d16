"""
Tests for SelectionEngine - keyword filtering and auto-desire.
"""

import pytest

from conftest import make_row
from sweep.dictionary import DictionaryType
from sweep.selection import SelectionEngine


@pytest.fixture
def rows():
    return [
        make_row({"lab_name": "Breast cancer panel", "loinc_code": "1"}, 0),
        make_row({"lab_name": "Hemoglobin A1c", "loinc_code": "4548-4"}, 1),
        make_row({"lab_name": "CA 15-3", "common_name": "Breast tumor marker"}, 2),
        make_row({"lab_name": "Cancer antigen 125"}, 3),
    ]


@pytest.fixture
def engine(store):
    return SelectionEngine(store)


class TestApplyFilter:
    """Pure filtering."""

    def test_no_terms_returns_everything(self, engine, rows):
        assert engine.apply_filter(rows, []) == rows

    def test_or_across_terms_and_columns(self, engine, rows):
        matching = engine.apply_filter(rows, ["breast", "4548"])
        assert [r.stable_key.ordinal for r in matching] == [0, 1, 2]

    def test_collection_order_preserved(self, engine, rows):
        matching = engine.apply_filter(rows, ["cancer", "breast"])
        assert [r.stable_key.ordinal for r in matching] == [0, 2, 3]

    def test_filter_does_not_touch_state(self, engine, store, rows):
        engine.apply_filter(rows, ["breast"])
        assert not any(r.desired for r in rows)
        assert len(store) == 0

    def test_degenerate_terms_match_nothing(self, engine, rows):
        assert engine.apply_filter(rows, ["**"]) == []


class TestAutoDesire:
    """Matching rows are desired and record their first term."""

    def test_first_match_follows_insertion_order(self, engine, store, rows):
        engine.run(DictionaryType.LAB, rows, ["breast", "cancer"])
        assert rows[0].keyword_matched == "breast"
        assert store.get(DictionaryType.LAB, rows[0].stable_key).keyword_matched == "breast"

        engine.run(DictionaryType.LAB, rows, ["cancer", "breast"])
        assert rows[0].keyword_matched == "cancer"

    def test_matching_rows_desired(self, engine, store, rows):
        result = engine.run(DictionaryType.LAB, rows, ["breast"])
        assert result.auto_desired == 2
        assert [r.desired for r in rows] == [True, False, True, False]
        assert store.get(DictionaryType.LAB, rows[1].stable_key) is None

    def test_manual_deselect_overridden_on_next_pass(self, engine, rows):
        engine.run(DictionaryType.LAB, rows, ["breast"])
        rows[0].desired = False
        engine.run(DictionaryType.LAB, rows, ["breast", "a1c"])
        assert rows[0].desired is True

    def test_existing_match_kept_when_none_matches(self, engine, rows):
        rows[1].keyword_matched = "earlier"
        engine.auto_desire(DictionaryType.LAB, [rows[1]], ["breast"])
        assert rows[1].keyword_matched == "earlier"
        assert rows[1].desired is True


class TestRun:
    """Committed terms plus pending text."""

    def test_pending_text_filters_without_auto_desire(self, engine, rows):
        result = engine.run(DictionaryType.LAB, rows, [], pending_text="hemoglobin")
        assert [r.stable_key.ordinal for r in result.matching] == [1]
        assert result.filtered
        assert result.auto_desired == 0
        assert rows[1].desired is False

    def test_pending_text_joins_committed_terms(self, engine, rows):
        result = engine.run(DictionaryType.LAB, rows, ["breast"], pending_text=" a1c ")
        assert result.terms == ["breast", "a1c"]
        assert rows[1].desired is True
        assert rows[1].keyword_matched == "a1c"

    def test_clearing_terms_restores_everything(self, engine, rows):
        engine.run(DictionaryType.LAB, rows, ["breast"])
        before = [r.desired for r in rows]

        result = engine.run(DictionaryType.LAB, rows, [])

        assert len(result.matching) == len(rows)
        assert [r.desired for r in rows] == before
        assert not result.filtered

    def test_match_counts(self, rows):
        counts = SelectionEngine.match_counts(rows, ["breast", "cancer", "zzz"])
        assert counts == {"breast": 2, "cancer": 2, "zzz": 0}

    def test_first_match_helper(self, engine, rows):
        assert engine.first_match(rows[2], ["cancer", "marker"]) == "marker"
        assert engine.first_match(rows[1], ["cancer"]) == ""
