"""Errors raised by the availability and booking engine.

Route handlers translate these into HTTP responses; nothing here is retried.
"""


class BookingError(Exception):
    """Base class for every engine error."""


class ConfigurationError(BookingError):
    """Buffer, schedule, break or service settings cannot produce slots."""


class ClosedError(BookingError):
    """The day has no bookable time. A normal empty result, not a failure."""

    def __init__(self, reason: str, message: str | None = None):
        super().__init__(message or reason.replace('_', ' '))
        self.reason = reason


class ConflictError(BookingError):
    """The requested range overlaps an existing non-cancelled appointment."""

    def __init__(self, conflicting_ids: list[int] | None = None):
        self.conflicting_ids = conflicting_ids or []
        super().__init__('This time is already booked.')


class NotFoundError(BookingError):
    """A referenced business, professional, service or appointment does not exist."""


class SlotUnavailableError(BookingError):
    """The requested start is outside working hours or inside a break or block."""

    def __init__(self, reason: str):
        super().__init__(reason.replace('_', ' '))
        self.reason = reason


class InvalidTransitionError(BookingError):
    """An appointment status change that the lifecycle does not allow."""
