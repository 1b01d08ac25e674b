class TimecardError(Exception):
    """Base exception for timecard operations."""


class StorageError(TimecardError):
    """Raised when persisted state cannot be written."""


class ClockStateError(TimecardError):
    """Raised when a check-in or check-out does not apply to the current state."""


class NotFoundError(TimecardError):
    """Raised when a user or request id is unknown."""
