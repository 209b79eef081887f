from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol, TypeVar


class _Scheduled(Protocol):
    @property
    def date(self) -> date: ...

    @property
    def start_minutes(self) -> int: ...

    @property
    def end_minutes(self) -> int: ...


S = TypeVar("S", bound=_Scheduled)


@dataclass(frozen=True)
class TimeRange:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError("Booking start time must be earlier than end time.")


def has_time_overlap(new_start: int, new_end: int, exist_start: int, exist_end: int) -> bool:
    """Return True when two minute-of-day intervals overlap by even one minute.

    Intervals are treated as half-open ranges: [start, end)
    so touching boundaries (e.g. 10:00-11:00 and 11:00-12:00) do not overlap.
    """
    return exist_start < new_end and exist_end > new_start


def find_conflicts(
    candidate_date: date,
    candidate_start: int,
    candidate_end: int,
    existing_same_date: Iterable[S],
) -> list[S]:
    """Return the existing bookings on ``candidate_date`` that intersect the candidate range."""
    return [
        booking
        for booking in existing_same_date
        if booking.date == candidate_date
        and has_time_overlap(candidate_start, candidate_end, booking.start_minutes, booking.end_minutes)
    ]


def conflicts(
    candidate_date: date,
    candidate_start: int,
    candidate_end: int,
    existing_same_date: Iterable[_Scheduled],
) -> bool:
    for booking in existing_same_date:
        if booking.date != candidate_date:
            continue
        if has_time_overlap(candidate_start, candidate_end, booking.start_minutes, booking.end_minutes):
            return True
    return False
