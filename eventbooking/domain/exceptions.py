"""
Domain-specific exception hierarchy for the booking engine.

Every error the services raise on purpose derives from ``BookingEngineError``
so the boundary layer can tell them apart from unexpected failures.
"""


class BookingEngineError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(BookingEngineError):
    """Raised when a request is malformed or misses required fields."""


class NotFoundError(BookingEngineError):
    """Raised when a referenced event or booking does not exist."""


class SchedulingConflictError(BookingEngineError):
    """Raised when a requested time range cannot be booked."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InternalError(BookingEngineError):
    """Raised when a storage collaborator fails unexpectedly."""
