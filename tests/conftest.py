"""
Pytest fixtures for the curation core tests.
"""

import os
import sys
from pathlib import Path
from typing import Dict, List

import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sweep.dictionary import SourceSystem, StableKey, UnifiedRow
from sweep.selection import SelectionStateStore
from sweep.settings import reset_settings_service


DX_ROWS = [
    {"concept_id": "1", "vocabulary_id": "ICD10CM", "icd_code": "C50.911",
     "icd_description": "Malignant neoplasm of breast"},
    {"concept_id": "2", "vocabulary_id": "ICD9CM", "icd_code": "174.9",
     "icd_description": "Malignant neoplasm of breast (female), unspecified"},
    {"concept_id": "3", "vocabulary_id": "ICD10CM", "icd_code": "M13.0",
     "icd_description": "Polyarthritis, unspecified"},
    {"concept_id": "4", "vocabulary_id": "ICD10CM", "icd_code": "C56.9",
     "icd_description": "Malignant neoplasm of ovary"},
]

MEDICATION_ROWS = [
    {"medication_key": "10", "medication_name": "Metformin 500 MG Tab",
     "generic_name": "metformin", "route": "ORAL", "source_db": "epic"},
    {"medication_key": "", "medication_mnemonic": "METF500", "medication_name": "METFORMIN",
     "generic_name": "metformin", "route": "NULL", "source_db": "meditech"},
    {"medication_key": "", "ndc_11": "00093104801", "medication_name": "Glucophage",
     "generic_name": "metformin", "route": "PO", "source_db": "centricity"},
    {"medication_key": "11", "medication_name": "Lisinopril 10 MG Tab",
     "generic_name": "lisinopril", "route": "oral", "source_db": "EPIC"},
]

PROCEDURE_ROWS = [
    {"procedure_key": "1", "procedure_name": "Colonoscopy", "category": "gi",
     "source_db": "epic"},
    {"procedure_key": "2", "procedure_name": "Mammogram", "category": "",
     "source_db": "gecb"},
]

LOCATION_FILES = {
    "dictionary-location-epic.csv": [
        {"department_key": "100", "department_name": "ONCOLOGY CLINIC"},
    ],
    "dictionary-location-gecb.csv": [
        {"sched_location_id": "7", "sched_location": "Family Medicine"},
    ],
    "dictionary-location-meditech.csv": [
        {"location_mnemonic": "4W", "location_description": "4 West Oncology"},
    ],
}


class FakeLoader:
    """In-memory loader that records the files it was asked for."""

    def __init__(self, files: Dict[str, List[Dict[str, str]]], fail: bool = False):
        self.files = files
        self.fail = fail
        self.requests: List[List[str]] = []

    def load_files(self, files):
        ids = [f.file_id for f in files]
        self.requests.append(ids)
        if self.fail:
            raise OSError("share unavailable")
        return {file_id: list(self.files.get(file_id, [])) for file_id in ids}


def make_row(values: Dict[str, str], ordinal: int = 0,
             source: SourceSystem = SourceSystem.EPIC,
             file_id: str = "dictionary-lab.csv", **state) -> UnifiedRow:
    """Helper to create a UnifiedRow for testing."""
    return UnifiedRow(values=dict(values), source=source,
                      stable_key=StableKey(file_id, ordinal), **state)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Keep SWEEP_* variables and the settings singleton out of tests."""
    for name in list(os.environ):
        if name.startswith("SWEEP_"):
            monkeypatch.delenv(name, raising=False)
    reset_settings_service()
    yield
    reset_settings_service()


@pytest.fixture
def raw_files():
    """All sample dictionary files keyed by file id."""
    files = {
        "dictionary-dx.csv": [dict(r) for r in DX_ROWS],
        "dictionary-medication.csv": [dict(r) for r in MEDICATION_ROWS],
        "dictionary-procedure.csv": [dict(r) for r in PROCEDURE_ROWS],
        "dictionary-lab.csv": [
            {"lab_component_key": "5", "lab_name": "HEMOGLOBIN A1C", "source_db": "epic"},
            {"print_number": "22", "lab_name": "HGB A1C", "source_db": "meditech"},
        ],
    }
    files.update({k: [dict(r) for r in v] for k, v in LOCATION_FILES.items()})
    return files


@pytest.fixture
def store():
    return SelectionStateStore()


@pytest.fixture
def fake_loader(raw_files):
    return FakeLoader(raw_files)


@pytest.fixture
def data_dir(tmp_path, raw_files):
    """Directory of dictionary CSVs written with pandas."""
    directory = tmp_path / "data"
    directory.mkdir()
    for file_id, rows in raw_files.items():
        pd.DataFrame(rows).to_csv(directory / file_id, index=False)
    return directory
