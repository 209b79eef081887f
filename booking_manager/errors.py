from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .validation import Violation


class BookingError(Exception):
    """Base class for domain errors raised by the booking core."""


class ValidationError(BookingError, ValueError):
    def __init__(self, violations: Sequence["Violation"]) -> None:
        self.violations = list(violations)
        summary = "; ".join(f"{item.field}: {item.message}" for item in self.violations)
        super().__init__(summary or "Booking fields are invalid.")


class ConflictError(BookingError, ValueError):
    def __init__(self, booking_date: str, start_time: str, end_time: str) -> None:
        self.date = booking_date
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(
            f"Booking conflict detected for date {booking_date} and time range {start_time} - {end_time}"
        )


class NotFoundError(BookingError, LookupError):
    def __init__(self, resource_id: str, kind: str = "Booking") -> None:
        self.resource_id = resource_id
        self.kind = kind
        super().__init__(f'{kind} with ID "{resource_id}" not found')


class DuplicateUserError(BookingError, ValueError):
    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f'Username "{username}" is already taken')


class AuthenticationError(BookingError):
    pass


class StoreUnavailableError(RuntimeError):
    """The persistence collaborator could not be read or written.

    This is an infrastructure fault, not a domain error. Callers may retry;
    the core never does.
    """


class ConfigurationError(RuntimeError):
    pass
