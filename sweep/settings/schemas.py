"""
Settings Schemas
================
Pydantic models describing configurable values and how raw text
(environment variables, .env entries, CLI input) is coerced into them.
"""

from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel


class SettingType(str, Enum):
    """Supported setting value types."""
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"
    PATH = "path"


class SettingSource(str, Enum):
    """Where a resolved value came from."""
    DEFAULT = "default"
    ENV = "env"
    OVERRIDE = "override"


TRUE_WORDS = ("1", "true", "yes", "on")
FALSE_WORDS = ("0", "false", "no", "off")


class SettingDefinition(BaseModel):
    """A configurable value with its type and default."""
    key: str
    label: str
    description: str
    value_type: SettingType
    default_value: Any

    @property
    def env_var(self) -> str:
        """Environment variable that overrides this setting."""
        return f"SWEEP_{self.key.upper()}"

    def coerce(self, raw: Any) -> Any:
        """
        Convert a raw value to this setting's type.

        Raises:
            ValueError: If the value cannot be converted
        """
        if self.value_type == SettingType.DATE:
            if isinstance(raw, date):
                return raw
            try:
                return date.fromisoformat(str(raw).strip()[:10])
            except ValueError:
                raise ValueError(f"{self.key}: expected YYYY-MM-DD, got {raw!r}") from None

        if self.value_type == SettingType.BOOLEAN:
            if isinstance(raw, bool):
                return raw
            word = str(raw).strip().lower()
            if word in TRUE_WORDS:
                return True
            if word in FALSE_WORDS:
                return False
            raise ValueError(f"{self.key}: expected a boolean, got {raw!r}")

        if self.value_type == SettingType.PATH:
            return Path(str(raw))

        return str(raw)


class SettingValue(BaseModel):
    """A resolved setting and its origin."""
    key: str
    value: Any
    value_type: SettingType
    category: str
    label: str
    description: Optional[str] = None
    source: SettingSource = SettingSource.DEFAULT


class SettingCategory(BaseModel):
    """Settings grouped for display."""
    id: str
    name: str
    description: str
    order: int
    settings: List[SettingValue] = []
