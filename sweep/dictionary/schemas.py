# Sweep Dictionary - Column Schemas
# =================================
"""
Declared layout of every dictionary file.

Each SourceFile records which dictionary type it belongs to, which source
systems it serves, its column order, and how rows inside the file are
attributed to a source system (per-row `source_db` tag, or the dx
vocabulary). The unifier consumes these declarations instead of guessing
columns from whatever rows happen to load.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .models import DictionaryType, SourceSystem


# vocabulary_id values in the dx file -> the system that must be active
VOCABULARY_SYSTEMS: Dict[str, SourceSystem] = {
    "ICD10CM": SourceSystem.ICD10,
    "ICD9CM": SourceSystem.ICD9,
}


@dataclass(frozen=True)
class SourceFile:
    """Declaration of one raw dictionary file."""
    file_id: str                            # e.g. "dictionary-lab.csv"
    dictionary_type: DictionaryType
    systems: Tuple[SourceSystem, ...]       # Systems whose rows the file carries
    columns: Tuple[str, ...]                # Declared column order
    source_column: Optional[str] = None     # Per-row system tag (harmonized files)
    vocabulary_column: Optional[str] = None # dx only

    @property
    def is_harmonized(self) -> bool:
        """True when one file unions several systems."""
        return len(self.systems) > 1

    def serves_any(self, active: Sequence[SourceSystem]) -> bool:
        return any(s in active for s in self.systems)


SOURCE_FILES: List[SourceFile] = [
    SourceFile(
        file_id="dictionary-dx.csv",
        dictionary_type=DictionaryType.DX,
        systems=(SourceSystem.ICD10, SourceSystem.ICD9),
        columns=("concept_id", "vocabulary_id", "icd_code", "icd_description"),
        vocabulary_column="vocabulary_id",
    ),
    SourceFile(
        file_id="dictionary-medication.csv",
        dictionary_type=DictionaryType.MEDICATION,
        systems=(SourceSystem.EPIC, SourceSystem.MEDITECH, SourceSystem.CENTRICITY),
        columns=(
            "medication_key", "medication_mnemonic", "ndc_11", "medication_name",
            "generic_name", "pharmaceutical_class", "therapeutic_class",
            "route", "gpi", "source_db",
        ),
        source_column="source_db",
    ),
    SourceFile(
        file_id="dictionary-lab.csv",
        dictionary_type=DictionaryType.LAB,
        systems=(SourceSystem.EPIC, SourceSystem.MEDITECH),
        columns=(
            "lab_component_key", "print_number", "source_meditech", "lab_name",
            "common_name", "lab_mnemonic", "loinc_code", "loinc_name",
            "default_unit", "source_db",
        ),
        source_column="source_db",
    ),
    SourceFile(
        file_id="dictionary-location-epic.csv",
        dictionary_type=DictionaryType.LOCATION,
        systems=(SourceSystem.EPIC,),
        columns=(
            "department_key", "department_external_name", "department_name",
            "department_specialty", "location_name", "is_bed", "is_room",
            "department_type",
        ),
    ),
    SourceFile(
        file_id="dictionary-location-gecb.csv",
        dictionary_type=DictionaryType.LOCATION,
        systems=(SourceSystem.GECB,),
        columns=("sched_location_id", "sched_location", "clinic_name", "billing_loc_name"),
    ),
    SourceFile(
        file_id="dictionary-location-meditech.csv",
        dictionary_type=DictionaryType.LOCATION,
        systems=(SourceSystem.MEDITECH,),
        columns=(
            "location_mnemonic", "location_description", "facility_name",
            "campus_name", "location_type", "location_subtype",
        ),
    ),
    SourceFile(
        file_id="dictionary-procedure.csv",
        dictionary_type=DictionaryType.PROCEDURE,
        systems=(SourceSystem.EPIC, SourceSystem.GECB),
        columns=(
            "procedure_key", "billing_code", "procedure_name", "short_name",
            "category", "cpt_code", "vocabulary_id", "source_db",
        ),
        source_column="source_db",
    ),
]


def supported_systems(dictionary_type: DictionaryType) -> List[SourceSystem]:
    """Systems that can contribute rows to a dictionary type, in declared order."""
    systems: List[SourceSystem] = []
    for source_file in SOURCE_FILES:
        if source_file.dictionary_type != dictionary_type:
            continue
        for system in source_file.systems:
            if system not in systems:
                systems.append(system)
    return systems


def files_for(dictionary_type: DictionaryType,
              active_systems: Sequence[SourceSystem]) -> List[SourceFile]:
    """
    Files to load for a type given its active systems.

    A harmonized file is returned once even when several of its
    systems are active.
    """
    return [
        f for f in SOURCE_FILES
        if f.dictionary_type == dictionary_type and f.serves_any(active_systems)
    ]


def get_source_file(file_id: str) -> Optional[SourceFile]:
    """Look up a declaration by file id."""
    for source_file in SOURCE_FILES:
        if source_file.file_id == file_id:
            return source_file
    return None
