from __future__ import annotations

from collections import defaultdict
from contextlib import ExitStack
from datetime import date, datetime
import logging
import threading
from typing import Any, Callable, Mapping

from .booking import TimeRange, conflicts, find_conflicts
from .errors import ConflictError, NotFoundError, ValidationError
from .timeslots import parse_date, parse_time
from .validation import TIME_SLOT_FIELD, Violation, normalize_fields, validate_booking
from .yaml_store import BookingCollection, Reservation

logger = logging.getLogger(__name__)

_ATTRIBUTE_NAMES = {
    "user": "user",
    "date": "date",
    "startTime": "start_time",
    "endTime": "end_time",
}


class BookingStore:
    """Create, read, update and delete reservations on top of a document collection.

    ``create`` refuses a booking whose half-open ``[start, end)`` range meets an
    existing booking on the same date. The conflict query and the insert are two
    separate collection calls, so by default two concurrent ``create`` calls for
    overlapping ranges can both succeed. ``strict=True`` holds a per-date lock
    across both steps, which closes that window for callers sharing this store
    instance.

    ``update`` applies the given fields without an overlap check unless
    ``recheck_on_update=True``.
    """

    def __init__(
        self,
        collection: BookingCollection,
        *,
        strict: bool = False,
        recheck_on_update: bool = False,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.collection = collection
        self.strict = strict
        self.recheck_on_update = recheck_on_update
        self.clock: Callable[[], datetime] = clock or datetime.now
        self._date_locks: defaultdict[date, threading.Lock] = defaultdict(threading.Lock)
        self._date_locks_guard = threading.Lock()

    def create(self, fields: Mapping[str, Any]) -> Reservation:
        validate_booking(fields, partial=False).raise_for_violations()
        normalized, _ = normalize_fields(fields)

        booking_date = parse_date(normalized["date"])
        requested = TimeRange(parse_time(normalized["startTime"]), parse_time(normalized["endTime"]))

        with self._locked(booking_date):
            self._ensure_no_conflict(booking_date, requested, normalized["startTime"], normalized["endTime"])
            created = self.collection.insert(
                {
                    "user": normalized["user"],
                    "date": booking_date,
                    "start_time": normalized["startTime"],
                    "end_time": normalized["endTime"],
                },
                now=self.clock(),
            )

        logger.info("Created booking %s on %s %s-%s", created.id, created.date, created.start_time, created.end_time)
        return created

    def list(self) -> list[Reservation]:
        return self.collection.find()

    def get_by_id(self, booking_id: str) -> Reservation:
        record = self.collection.find_by_id(booking_id)
        if record is None:
            raise NotFoundError(booking_id)
        return record

    def update(self, booking_id: str, fields: Mapping[str, Any]) -> Reservation:
        validate_booking(fields, partial=True).raise_for_violations()
        normalized, _ = normalize_fields(fields)

        changes: dict[str, Any] = {}
        for name, value in normalized.items():
            if value is None:
                continue
            changes[_ATTRIBUTE_NAMES[name]] = parse_date(value) if name == "date" else value

        current = self.get_by_id(booking_id)
        new_date = changes.get("date", current.date)
        new_start = changes.get("start_time", current.start_time)
        new_end = changes.get("end_time", current.end_time)
        if parse_time(new_start) >= parse_time(new_end):
            raise ValidationError([Violation(TIME_SLOT_FIELD, "Start time must be earlier than end time")])

        if not changes:
            return current

        dates = {current.date, new_date} if self.recheck_on_update else set()
        with self._locked(*dates):
            if self.recheck_on_update:
                requested = TimeRange(parse_time(new_start), parse_time(new_end))
                self._ensure_no_conflict(new_date, requested, new_start, new_end, exclude_id=booking_id)

            updated = self.collection.update_by_id(booking_id, changes, now=self.clock())

        if updated is None:
            raise NotFoundError(booking_id)
        return updated

    def delete(self, booking_id: str) -> Reservation:
        removed = self.collection.delete_by_id(booking_id)
        if removed is None:
            raise NotFoundError(booking_id)
        logger.info("Deleted booking %s", booking_id)
        return removed

    def _ensure_no_conflict(
        self,
        booking_date: date,
        requested: TimeRange,
        start_time: str,
        end_time: str,
        exclude_id: str | None = None,
    ) -> None:
        same_date = [record for record in self.collection.find(date=booking_date) if record.id != exclude_id]
        if not conflicts(booking_date, requested.start, requested.end, same_date):
            return

        clashing = find_conflicts(booking_date, requested.start, requested.end, same_date)
        self.collection.record_event(
            "BOOKING_CONFLICT",
            {
                "date": booking_date.isoformat(),
                "startTime": start_time,
                "endTime": end_time,
                "conflicts_with": [record.id for record in clashing],
            },
        )
        raise ConflictError(booking_date.isoformat(), start_time, end_time)

    def _locked(self, *dates: date) -> ExitStack:
        stack = ExitStack()
        if not self.strict:
            return stack
        # sorted so two updates moving between the same dates cannot deadlock
        for booking_date in sorted(set(dates)):
            stack.enter_context(self._lock_for(booking_date))
        return stack

    def _lock_for(self, booking_date: date) -> threading.Lock:
        with self._date_locks_guard:
            return self._date_locks[booking_date]


def delete_message(booking_id: str) -> str:
    return f'Booking with ID "{booking_id}" successfully deleted'
