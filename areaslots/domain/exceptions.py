"""
Domain-specific exception hierarchy for the areaslots application.
"""


class AreaSlotsError(Exception):
    """Base class for all application-level errors."""


class StorageError(AreaSlotsError):
    """Raised when records cannot be fetched from or written to the store."""


class InvalidRecordError(AreaSlotsError, ValueError):
    """Raised when a persisted record violates its invariants."""


class RecordConflictError(AreaSlotsError):
    """Raised when a write would duplicate an existing unique record."""


class SlotUnavailableError(AreaSlotsError):
    """Raised when a booking targets a window that is no longer offered."""


class RecordNotFoundError(AreaSlotsError, LookupError):
    """Raised when an update targets a record that does not exist."""
