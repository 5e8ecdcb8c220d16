# Sweep Dictionary - System Resolver
# ==================================
"""
Source System Resolution
========================
Decides which upstream systems are relevant for a dictionary type given
the study date range and visit context.

Rules (deterministic, no side effects):
- dx:         icd10 if end >= ICD-10 start; icd9 if start < ICD-10 start
- medication: epic after go-live; meditech (inpatient) / centricity
              (outpatient) before go-live
- lab:        epic after go-live; meditech before go-live
- location:   epic after go-live; gecb (outpatient) / meditech (inpatient)
              before go-live
- procedure:  epic after go-live; gecb before go-live

The end date is compared inclusively and the start date strictly, so a
single-day range on the cutover still resolves a system. An empty result
falls back to icd10 (dx) or epic (all other types).
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Union

from .models import DictionaryType, SourceSystem

logger = logging.getLogger(__name__)


DateLike = Union[date, datetime, str, None]

# Historical cutovers
EPIC_GOLIVE = date(2023, 6, 3)
ICD10_START = date(2015, 10, 1)


def to_date(value: DateLike) -> Optional[date]:
    """
    Coerce a date-like value to a date.

    Accepts date, datetime and ISO 8601 strings ("2024-01-15",
    "2024-01-15T08:00:00"). Missing or unparseable values give None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.debug(f"Ignoring unparseable date: {value!r}")
        return None


class SystemResolver:
    """
    Maps a date range and visit context to active source systems.

    Example:
        resolver = SystemResolver()
        resolver.resolve("dx", date(2010, 1, 1), date(2020, 1, 1), False, False)
        # [SourceSystem.ICD10, SourceSystem.ICD9]
    """

    def __init__(self,
                 epic_golive: date = EPIC_GOLIVE,
                 icd10_start: date = ICD10_START):
        """
        Args:
            epic_golive: First day rows come from Epic
            icd10_start: First day diagnoses are coded in ICD-10
        """
        self.epic_golive = epic_golive
        self.icd10_start = icd10_start

    def resolve(self,
                dictionary_type: Union[str, DictionaryType],
                date_start: DateLike,
                date_end: DateLike,
                outpatient: bool,
                inpatient: bool) -> List[SourceSystem]:
        """
        Resolve active systems for one dictionary type.

        Returns:
            Ordered, duplicate-free list; never empty
        """
        dtype = DictionaryType.parse(dictionary_type)
        start = to_date(date_start)
        end = to_date(date_end)

        if dtype == DictionaryType.DX:
            return self._dx_systems(start, end)

        before = start is not None and start < self.epic_golive
        after = end is not None and end >= self.epic_golive

        systems: List[SourceSystem] = []
        if after:
            systems.append(SourceSystem.EPIC)

        if dtype == DictionaryType.MEDICATION:
            if before and inpatient:
                systems.append(SourceSystem.MEDITECH)
            if before and outpatient:
                systems.append(SourceSystem.CENTRICITY)
        elif dtype == DictionaryType.LAB:
            if before:
                systems.append(SourceSystem.MEDITECH)
        elif dtype == DictionaryType.LOCATION:
            if before and outpatient:
                systems.append(SourceSystem.GECB)
            if before and inpatient:
                systems.append(SourceSystem.MEDITECH)
        elif dtype == DictionaryType.PROCEDURE:
            if before:
                systems.append(SourceSystem.GECB)

        if not systems:
            systems.append(SourceSystem.EPIC)
        return systems

    def _dx_systems(self, start: Optional[date], end: Optional[date]) -> List[SourceSystem]:
        systems: List[SourceSystem] = []
        if end is not None and end >= self.icd10_start:
            systems.append(SourceSystem.ICD10)
        if start is not None and start < self.icd10_start:
            systems.append(SourceSystem.ICD9)
        if not systems:
            systems.append(SourceSystem.ICD10)
        return systems

    def resolve_all(self,
                    date_start: DateLike,
                    date_end: DateLike,
                    outpatient: bool,
                    inpatient: bool) -> Dict[DictionaryType, List[SourceSystem]]:
        """Resolve every dictionary type for the same context."""
        resolved = {
            dtype: self.resolve(dtype, date_start, date_end, outpatient, inpatient)
            for dtype in DictionaryType
        }
        logger.debug(
            "Resolved systems: "
            + ", ".join(f"{t.value}={[s.value for s in v]}" for t, v in resolved.items())
        )
        return resolved
