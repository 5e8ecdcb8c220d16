# Sweep Settings Module
"""
Configuration for the curation core: cutover dates, data location,
default study window and export naming.
"""

from .service import (
    SettingsService,
    get_settings_service,
    reset_settings_service,
)
from .schemas import (
    SettingType,
    SettingSource,
    SettingValue,
    SettingDefinition,
    SettingCategory,
)
from .defaults import SETTING_CATEGORIES, SETTING_DEFINITIONS, get_all_defaults

__all__ = [
    "SettingsService",
    "get_settings_service",
    "reset_settings_service",
    "SettingType",
    "SettingSource",
    "SettingValue",
    "SettingDefinition",
    "SettingCategory",
    "SETTING_CATEGORIES",
    "SETTING_DEFINITIONS",
    "get_all_defaults",
]
