# Sweep - Error Classes
# =====================
"""
Exceptions raised by the curation core.

Loaders and reloads report failures through result objects instead of
raising (LoadError supplies the message for an unreadable file); the
other classes cover invalid input at the module boundaries.
"""


class SweepError(Exception):
    """Base exception for curation errors."""
    pass


class UnknownDictionaryTypeError(SweepError, ValueError):
    """Raised when a dictionary type name is not recognised."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Unknown dictionary type '{value}'. "
            "Expected one of: dx, medication, lab, location, procedure."
        )


class LoadError(SweepError):
    """A dictionary file that cannot be read; reported as LoadResult.error."""

    def __init__(self, file_id: str, reason: str = None):
        self.file_id = file_id
        self.reason = reason
        super().__init__(f"Could not load {file_id}: {reason or 'Unknown error'}")


class ExportError(SweepError):
    """Raised when rows cannot be exported."""
    pass
