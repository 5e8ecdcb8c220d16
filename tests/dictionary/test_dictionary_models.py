"""
Tests for dictionary models and declared file schemas.
"""

import pytest

from sweep.dictionary import (
    DictionaryType,
    SourceSystem,
    StableKey,
    UnifiedRow,
    files_for,
    get_source_file,
    supported_systems,
)
from sweep.errors import UnknownDictionaryTypeError


class TestDictionaryType:
    """Type name parsing."""

    def test_parse(self):
        assert DictionaryType.parse("DX") is DictionaryType.DX
        assert DictionaryType.parse(" lab ") is DictionaryType.LAB
        assert DictionaryType.parse(DictionaryType.LOCATION) is DictionaryType.LOCATION

    def test_parse_unknown(self):
        with pytest.raises(UnknownDictionaryTypeError) as exc_info:
            DictionaryType.parse("vitals")
        assert "vitals" in str(exc_info.value)
        assert isinstance(exc_info.value, ValueError)


class TestStableKey:
    """String form and parsing."""

    def test_str_and_parse(self):
        key = StableKey("dictionary-dx.csv", 12)
        assert str(key) == "dictionary-dx.csv:12"
        assert StableKey.parse(str(key)) == key

    def test_keys_from_different_files_differ(self):
        assert StableKey("a.csv", 0) != StableKey("b.csv", 0)


class TestUnifiedRow:
    """Row flattening."""

    def test_to_dict_puts_selection_last(self):
        row = UnifiedRow(
            values={"procedure_name": "Colonoscopy", "category": "gi"},
            source=SourceSystem.EPIC,
            stable_key=StableKey("dictionary-procedure.csv", 0),
            desired=True,
            category="endoscopy",
        )
        assert list(row.to_dict()) == ["procedure_name", "desired", "category", "keyword_matched"]
        assert row.to_dict()["category"] == "endoscopy"

    def test_display_names(self):
        assert SourceSystem.ICD10.get_display_name() == "ICD-10-CM"
        assert SourceSystem.GECB.get_display_name() == "GECB"


class TestSourceFiles:
    """Declared dictionary files."""

    def test_harmonized_file_listed_once(self):
        files = files_for(DictionaryType.MEDICATION, [SourceSystem.EPIC, SourceSystem.MEDITECH])
        assert [f.file_id for f in files] == ["dictionary-medication.csv"]
        assert files[0].is_harmonized

    def test_location_files_by_system(self):
        files = files_for(DictionaryType.LOCATION, [SourceSystem.GECB])
        assert [f.file_id for f in files] == ["dictionary-location-gecb.csv"]

    def test_no_active_system_no_files(self):
        assert files_for(DictionaryType.LAB, [SourceSystem.GECB]) == []

    def test_supported_systems(self):
        assert supported_systems(DictionaryType.DX) == [SourceSystem.ICD10, SourceSystem.ICD9]
        assert supported_systems(DictionaryType.LOCATION) == [
            SourceSystem.EPIC, SourceSystem.GECB, SourceSystem.MEDITECH,
        ]

    def test_get_source_file(self):
        assert get_source_file("dictionary-dx.csv").vocabulary_column == "vocabulary_id"
        assert get_source_file("missing.csv") is None
