"""
Settings Service
================
Resolves setting values from runtime overrides, SWEEP_* environment
variables (a .env file is loaded when present) and declared defaults,
in that order.
"""

import logging
import os
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .defaults import SETTING_CATEGORIES, SETTING_DEFINITIONS, get_definition
from .schemas import SettingCategory, SettingDefinition, SettingSource, SettingValue

logger = logging.getLogger(__name__)


# Singleton instance
_settings_service: Optional["SettingsService"] = None


def get_settings_service() -> "SettingsService":
    """Get or create the global settings service instance."""
    global _settings_service
    if _settings_service is None:
        _settings_service = SettingsService()
    return _settings_service


def reset_settings_service() -> None:
    """Drop the global settings service (for testing)."""
    global _settings_service
    _settings_service = None


class SettingsService:
    """Service for reading curation settings."""

    def __init__(self,
                 environ: Optional[Mapping[str, str]] = None,
                 env_file: Optional[str] = None):
        """Initialize the settings service.

        Args:
            environ: Mapping to read SWEEP_* variables from; defaults to
                os.environ after loading .env
            env_file: Explicit .env path
        """
        if environ is None:
            if env_file:
                load_dotenv(env_file)
            else:
                load_dotenv()
            environ = os.environ
        self._environ = environ
        self._overrides: Dict[Tuple[str, str], Any] = {}

    def _resolve(self, definition: SettingDefinition, category: str) -> Tuple[Any, SettingSource]:
        if (category, definition.key) in self._overrides:
            return self._overrides[(category, definition.key)], SettingSource.OVERRIDE

        raw = self._environ.get(definition.env_var)
        if raw is not None and raw != "":
            try:
                return definition.coerce(raw), SettingSource.ENV
            except ValueError as e:
                logger.warning(f"Ignoring {definition.env_var}: {e}")

        return definition.coerce(definition.default_value), SettingSource.DEFAULT

    def get(self, category: str, key: str, default: Any = None) -> Any:
        """Get a setting value.

        This is the primary method for other modules to access settings.

        Args:
            category: Setting category
            key: Setting key
            default: Returned when the setting is not defined

        Returns:
            Setting value or default
        """
        try:
            definition = get_definition(category, key)
        except KeyError:
            return default
        value, _ = self._resolve(definition, category)
        return value

    def update_setting(self, category: str, key: str, value: Any) -> Any:
        """Override a setting for the lifetime of this service.

        Raises:
            ValueError: If the setting is unknown or the value is invalid
        """
        try:
            definition = get_definition(category, key)
        except KeyError:
            raise ValueError(f"Unknown setting: {category}/{key}") from None
        coerced = definition.coerce(value)
        self._overrides[(category, key)] = coerced
        logger.info(f"Setting {category}/{key} overridden")
        return coerced

    def reset_category(self, category: str) -> None:
        """Drop runtime overrides for a category."""
        for override_key in [k for k in self._overrides if k[0] == category]:
            del self._overrides[override_key]

    def get_all(self) -> List[SettingCategory]:
        """All settings with their resolved values, grouped by category."""
        categories = []
        for category_id, category_info in SETTING_CATEGORIES.items():
            settings = []
            for definition in SETTING_DEFINITIONS.get(category_id, []):
                value, source = self._resolve(definition, category_id)
                settings.append(SettingValue(
                    key=definition.key,
                    value=value,
                    value_type=definition.value_type,
                    category=category_id,
                    label=definition.label,
                    description=definition.description,
                    source=source,
                ))
            categories.append(SettingCategory(
                id=category_id,
                name=category_info["name"],
                description=category_info["description"],
                order=category_info["order"],
                settings=settings,
            ))
        categories.sort(key=lambda c: c.order)
        return categories

    def cutovers(self) -> Tuple[date, date]:
        """(Epic go-live, ICD-10 start)."""
        return self.get("cutover", "epic_golive"), self.get("cutover", "icd10_start")

    def create_resolver(self):
        """SystemResolver using the configured cutover dates."""
        from sweep.dictionary.system_resolver import SystemResolver

        epic_golive, icd10_start = self.cutovers()
        return SystemResolver(epic_golive=epic_golive, icd10_start=icd10_start)
