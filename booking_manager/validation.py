from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from .errors import ValidationError
from .timeslots import is_date_string, is_time_string, parse_time

BOOKING_FIELDS = ("user", "date", "startTime", "endTime")
FIELD_ALIASES = {
    "user": "user",
    "date": "date",
    "startTime": "startTime",
    "start_time": "startTime",
    "endTime": "endTime",
    "end_time": "endTime",
}
TIME_SLOT_FIELD = "timeSlot"

_FORMAT_MESSAGES = {
    "date": "Date must be in the format YYYY-MM-DD",
    "startTime": "StartTime must be in the format HH:mm",
    "endTime": "EndTime must be in the format HH:mm",
}


@dataclass(frozen=True)
class Violation:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass(frozen=True)
class ValidationResult:
    violations: list[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def raise_for_violations(self) -> None:
        if self.violations:
            raise ValidationError(self.violations)


def normalize_fields(fields: Mapping[str, Any]) -> tuple[dict[str, Any], list[Violation]]:
    """Map snake_case keys onto the wire names and report keys that are not booking fields."""
    normalized: dict[str, Any] = {}
    unknown: list[Violation] = []
    for key, value in fields.items():
        canonical = FIELD_ALIASES.get(key)
        if canonical is None:
            unknown.append(Violation(str(key), f"{key} is not a booking field"))
            continue
        normalized[canonical] = value
    return normalized, unknown


def validate_booking(fields: Mapping[str, Any], partial: bool = False) -> ValidationResult:
    """Check booking fields for shape and start/end ordering.

    With ``partial=False`` (create) every field is mandatory. With
    ``partial=True`` (update) fields may be omitted, but any field that is
    present must have the right shape, and the ordering rule applies only
    when both times are given.
    """
    normalized, violations = normalize_fields(fields)

    for name in BOOKING_FIELDS:
        if name not in normalized or normalized[name] is None:
            if not partial:
                violations.append(Violation(name, f"{name} is required"))
            continue

        value = normalized[name]
        if name == "user":
            if not isinstance(value, str) or not value.strip():
                violations.append(Violation("user", "user should not be empty"))
        elif name == "date":
            if not is_date_string(value):
                violations.append(Violation("date", _FORMAT_MESSAGES["date"]))
        elif not is_time_string(value):
            violations.append(Violation(name, _FORMAT_MESSAGES[name]))

    start = normalized.get("startTime")
    end = normalized.get("endTime")
    if is_time_string(start) and is_time_string(end) and parse_time(start) >= parse_time(end):
        violations.append(Violation(TIME_SLOT_FIELD, "Start time must be earlier than end time"))

    return ValidationResult(violations)
