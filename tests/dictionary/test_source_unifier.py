"""
Tests for SourceUnifier - merging raw files into keyed collections.
"""

import logging

import pytest

from sweep.dictionary import DictionaryType, SourceSystem, SourceUnifier, StableKey


ALL_MEDICATION = [SourceSystem.EPIC, SourceSystem.MEDITECH, SourceSystem.CENTRICITY]


class TestDxUnification:
    """Vocabulary-based inclusion in the diagnosis file."""

    def test_vocabulary_filters_rows(self, store, raw_files):
        unifier = SourceUnifier(store)
        rows = unifier.unify("dx", [SourceSystem.ICD10], raw_files)

        assert [r.get("concept_id") for r in rows] == ["1", "3", "4"]
        assert all(r.source == SourceSystem.ICD10 for r in rows)

    def test_both_vocabularies(self, store, raw_files):
        rows = SourceUnifier(store).unify("dx", [SourceSystem.ICD10, SourceSystem.ICD9], raw_files)
        assert len(rows) == 4
        assert rows[1].source == SourceSystem.ICD9

    def test_ordinal_is_position_in_full_file(self, store, raw_files):
        """Filtered-out rows still consume an ordinal."""
        rows = SourceUnifier(store).unify("dx", [SourceSystem.ICD10], raw_files)
        assert [r.stable_key.ordinal for r in rows] == [0, 2, 3]
        assert str(rows[0].stable_key) == "dictionary-dx.csv:0"

    def test_unknown_vocabulary_kept(self, store):
        raw = {"dictionary-dx.csv": [{"concept_id": "9", "vocabulary_id": "SNOMED"}]}
        rows = SourceUnifier(store).unify("dx", [SourceSystem.ICD10], raw)
        assert len(rows) == 1
        assert rows[0].source == SourceSystem.ICD10


class TestHarmonizedUnification:
    """Per-row source_db tags in harmonized files."""

    def test_tag_decides_inclusion(self, store, raw_files):
        rows = SourceUnifier(store).unify("medication", [SourceSystem.EPIC], raw_files)
        assert [r.get("medication_key") for r in rows] == ["10", "11"]

    def test_tag_is_case_insensitive(self, store, raw_files):
        rows = SourceUnifier(store).unify("medication", [SourceSystem.EPIC], raw_files)
        assert rows[1].source == SourceSystem.EPIC

    def test_all_systems(self, store, raw_files):
        rows = SourceUnifier(store).unify("medication", ALL_MEDICATION, raw_files)
        assert [r.source for r in rows] == [
            SourceSystem.EPIC, SourceSystem.MEDITECH, SourceSystem.CENTRICITY, SourceSystem.EPIC,
        ]

    def test_unknown_tag_dropped(self, store):
        raw = {"dictionary-lab.csv": [{"lab_name": "X", "source_db": "cerner"}]}
        assert SourceUnifier(store).unify("lab", [SourceSystem.EPIC], raw) == []

    def test_untagged_row_uses_first_active_system(self, store):
        raw = {"dictionary-lab.csv": [{"lab_name": "X", "source_db": ""}]}
        rows = SourceUnifier(store).unify("lab", [SourceSystem.MEDITECH], raw)
        assert rows[0].source == SourceSystem.MEDITECH


class TestLocationUnification:
    """One file per location system."""

    def test_files_in_declared_order(self, store, raw_files):
        active = [SourceSystem.MEDITECH, SourceSystem.GECB, SourceSystem.EPIC]
        rows = SourceUnifier(store).unify("location", active, raw_files)

        assert [r.stable_key.file_id for r in rows] == [
            "dictionary-location-epic.csv",
            "dictionary-location-gecb.csv",
            "dictionary-location-meditech.csv",
        ]
        assert len({r.stable_key for r in rows}) == 3

    def test_inactive_file_skipped(self, store, raw_files):
        rows = SourceUnifier(store).unify("location", [SourceSystem.GECB], raw_files)
        assert [r.source for r in rows] == [SourceSystem.GECB]

    def test_missing_file_contributes_nothing(self, store, raw_files):
        del raw_files["dictionary-location-gecb.csv"]
        rows = SourceUnifier(store).unify(
            "location", [SourceSystem.GECB, SourceSystem.MEDITECH], raw_files
        )
        assert [r.source for r in rows] == [SourceSystem.MEDITECH]


class TestColumnProjection:
    """Declared columns first, undeclared kept."""

    def test_declared_columns_filled(self, store, raw_files):
        rows = SourceUnifier(store).unify("medication", [SourceSystem.EPIC], raw_files)
        columns = rows[0].columns
        assert columns[:3] == ["medication_key", "medication_mnemonic", "ndc_11"]
        assert rows[0].get("gpi") == ""

    def test_undeclared_columns_appended(self, store):
        raw = {"dictionary-lab.csv": [{"lab_name": "A1C", "source_db": "epic", "panel": "DM"}]}
        row = SourceUnifier(store).unify("lab", [SourceSystem.EPIC], raw)[0]
        assert row.columns[-1] == "panel"
        assert row.get("panel") == "DM"

    def test_values_kept_verbatim(self, store):
        raw = {"dictionary-lab.csv": [{"lab_name": "  HbA1c ", "source_db": "epic"}]}
        row = SourceUnifier(store).unify("lab", [SourceSystem.EPIC], raw)[0]
        assert row.get("lab_name") == "  HbA1c "

    def test_schema_drift_logged_once(self, store, caplog):
        raw = {"dictionary-lab.csv": [{"lab_name": "A1C", "source_db": "epic", "panel": "DM"}]}
        unifier = SourceUnifier(store)
        with caplog.at_level(logging.WARNING):
            unifier.unify("lab", [SourceSystem.EPIC], raw)
            unifier.unify("lab", [SourceSystem.EPIC], raw)
        drift = [r for r in caplog.records if "Schema drift" in r.getMessage()]
        assert len(drift) == 1


class TestRehydration:
    """Selection state seeded from the store."""

    def test_defaults_without_store(self, raw_files):
        rows = SourceUnifier().unify("dx", [SourceSystem.ICD10], raw_files)
        assert not any(r.desired for r in rows)
        assert all(r.category == "" and r.keyword_matched == "" for r in rows)

    def test_store_values_applied(self, store, raw_files):
        key = StableKey("dictionary-dx.csv", 2)
        store.set(DictionaryType.DX, key, desired=True, category="arthritis")

        rows = SourceUnifier(store).unify("dx", [SourceSystem.ICD10], raw_files)
        row = next(r for r in rows if r.stable_key == key)
        assert row.desired is True
        assert row.category == "arthritis"
        assert row.keyword_matched == ""

    def test_raw_category_seeds_procedure(self, store, raw_files):
        rows = SourceUnifier(store).unify(
            "procedure", [SourceSystem.EPIC, SourceSystem.GECB], raw_files
        )
        assert rows[0].category == "gi"

        store.set(DictionaryType.PROCEDURE, rows[0].stable_key, category="endoscopy")
        rows = SourceUnifier(store).unify(
            "procedure", [SourceSystem.EPIC, SourceSystem.GECB], raw_files
        )
        assert rows[0].category == "endoscopy"

    def test_unify_is_idempotent(self, store, raw_files):
        """Same inputs and store give equal rows."""
        store.set(DictionaryType.MEDICATION, StableKey("dictionary-medication.csv", 1), desired=True)
        unifier = SourceUnifier(store)

        first = unifier.unify("medication", ALL_MEDICATION, raw_files)
        second = unifier.unify("medication", ALL_MEDICATION, raw_files)

        assert first == second
        assert all(a is not b for a, b in zip(first, second))

    def test_store_not_written(self, store, raw_files):
        SourceUnifier(store).unify("medication", ALL_MEDICATION, raw_files)
        assert len(store) == 0
