# Sweep Dictionary - Models
# =========================
"""
Shared types for dictionary rows: dictionary types, source systems,
stable row keys and the unified row record.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Union

from sweep.errors import UnknownDictionaryTypeError


# Raw row as produced by a loader: column name -> string value, file order
RawRow = Mapping[str, str]

# Columns appended by the curation layer, never part of raw data
RESERVED_COLUMNS = ("desired", "category", "keyword_matched")


class DictionaryType(str, Enum):
    """Curated dictionary categories."""
    DX = "dx"
    MEDICATION = "medication"
    LAB = "lab"
    LOCATION = "location"
    PROCEDURE = "procedure"

    @classmethod
    def parse(cls, value: Union[str, "DictionaryType"]) -> "DictionaryType":
        """Convert a type name (case-insensitive) to a DictionaryType."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownDictionaryTypeError(str(value)) from None


class SourceSystem(str, Enum):
    """Upstream clinical systems contributing dictionary rows."""
    EPIC = "epic"
    MEDITECH = "meditech"
    CENTRICITY = "centricity"
    GECB = "gecb"
    ICD9 = "icd9"
    ICD10 = "icd10"

    def get_display_name(self) -> str:
        """Get badge label."""
        names = {
            SourceSystem.EPIC: "Epic",
            SourceSystem.MEDITECH: "Meditech",
            SourceSystem.CENTRICITY: "Centricity",
            SourceSystem.GECB: "GECB",
            SourceSystem.ICD9: "ICD-9-CM",
            SourceSystem.ICD10: "ICD-10-CM",
        }
        return names[self]


@dataclass(frozen=True)
class StableKey:
    """Row identity: originating file plus the row's position in that file."""
    file_id: str
    ordinal: int

    def __str__(self) -> str:
        return f"{self.file_id}:{self.ordinal}"

    @classmethod
    def parse(cls, text: str) -> "StableKey":
        """Parse the 'file_id:ordinal' form."""
        file_id, _, ordinal = text.rpartition(":")
        return cls(file_id=file_id, ordinal=int(ordinal))


@dataclass
class UnifiedRow:
    """A dictionary row attributed to a source system, with selection state."""
    values: Dict[str, str]          # Raw columns, verbatim strings
    source: SourceSystem
    stable_key: StableKey
    desired: bool = False
    category: str = ""
    keyword_matched: str = ""

    @property
    def columns(self) -> List[str]:
        return list(self.values.keys())

    def get(self, column: str, default: str = "") -> str:
        return self.values.get(column, default)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to data columns followed by the selection columns."""
        d: Dict[str, Any] = {k: v for k, v in self.values.items() if k not in RESERVED_COLUMNS}
        d["desired"] = self.desired
        d["category"] = self.category
        d["keyword_matched"] = self.keyword_matched
        return d
