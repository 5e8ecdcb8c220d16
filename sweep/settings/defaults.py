"""
Settings Defaults
=================
Default values and definitions for all curation settings.
"""

from datetime import date
from typing import Any, Dict, List

from .schemas import SettingDefinition, SettingType


# Category definitions with display order
SETTING_CATEGORIES = {
    "cutover": {
        "name": "Cutover Dates",
        "description": "Historical transitions between source systems",
        "order": 1,
    },
    "data": {
        "name": "Dictionary Data",
        "description": "Where dictionary files live and the default study window",
        "order": 2,
    },
    "export": {
        "name": "Export",
        "description": "Naming and location of exported files",
        "order": 3,
    },
}


SETTING_DEFINITIONS: Dict[str, List[SettingDefinition]] = {
    "cutover": [
        SettingDefinition(
            key="epic_golive",
            label="Epic Go-Live",
            description="First day rows come from Epic instead of the legacy systems",
            value_type=SettingType.DATE,
            default_value=date(2023, 6, 3),
        ),
        SettingDefinition(
            key="icd10_start",
            label="ICD-10 Start",
            description="First day diagnoses are coded in ICD-10-CM",
            value_type=SettingType.DATE,
            default_value=date(2015, 10, 1),
        ),
    ],
    "data": [
        SettingDefinition(
            key="data_dir",
            label="Data Directory",
            description="Directory containing dictionary-*.csv files",
            value_type=SettingType.PATH,
            default_value="data",
        ),
        SettingDefinition(
            key="default_date_start",
            label="Default Study Start",
            description="Study start used when no start date is given",
            value_type=SettingType.DATE,
            default_value=date(2020, 1, 1),
        ),
        SettingDefinition(
            key="default_date_end",
            label="Default Study End",
            description="Study end used when no end date is given",
            value_type=SettingType.DATE,
            default_value=date(2025, 12, 31),
        ),
        SettingDefinition(
            key="default_outpatient",
            label="Outpatient",
            description="Include outpatient systems by default",
            value_type=SettingType.BOOLEAN,
            default_value=True,
        ),
        SettingDefinition(
            key="default_inpatient",
            label="Inpatient",
            description="Include inpatient systems by default",
            value_type=SettingType.BOOLEAN,
            default_value=True,
        ),
    ],
    "export": [
        SettingDefinition(
            key="project_name",
            label="Project Name",
            description="Prefix for exported file names (e.g. campbell-endometrial-cancer-1)",
            value_type=SettingType.STRING,
            default_value="",
        ),
        SettingDefinition(
            key="export_dir",
            label="Export Directory",
            description="Directory exported CSV files are written to",
            value_type=SettingType.PATH,
            default_value="exports",
        ),
    ],
}


def get_definition(category: str, key: str) -> SettingDefinition:
    """Find a setting definition."""
    for definition in SETTING_DEFINITIONS.get(category, []):
        if definition.key == key:
            return definition
    raise KeyError(f"Unknown setting: {category}/{key}")


def get_all_defaults() -> Dict[str, Dict[str, Any]]:
    """Get all default values grouped by category."""
    defaults = {}
    for category, definitions in SETTING_DEFINITIONS.items():
        defaults[category] = {}
        for definition in definitions:
            defaults[category][definition.key] = definition.default_value
    return defaults
