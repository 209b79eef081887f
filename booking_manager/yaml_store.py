from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
import logging
from pathlib import Path
import shutil
import threading
from typing import Any, Callable, Mapping, Protocol
from uuid import uuid4

import yaml

from .errors import StoreUnavailableError
from .timeslots import parse_date, parse_time

logger = logging.getLogger(__name__)

BOOKINGS_FILE = "bookings.yaml"
USERS_FILE = "users.yaml"
EVENTS_FILE = "booking_events.yaml"
UPDATABLE_FIELDS = ("user", "date", "start_time", "end_time")


@dataclass(frozen=True)
class Reservation:
    id: str
    user: str
    date: date
    start_time: str
    end_time: str
    created_at: datetime
    updated_at: datetime

    @property
    def start_minutes(self) -> int:
        return parse_time(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time(self.end_time)

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "user": self.user,
            "date": self.date.isoformat(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "updated_at": self.updated_at.isoformat(timespec="seconds"),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Reservation":
        return Reservation(
            id=str(data["id"]),
            user=str(data["user"]),
            date=parse_date(str(data["date"])),
            start_time=str(data["startTime"]),
            end_time=str(data["endTime"]),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            updated_at=datetime.fromisoformat(str(data["updated_at"])),
        )


class BookingCollection(Protocol):
    """The document-store operations the booking core depends on."""

    def find(self, **filters: Any) -> list[Reservation]: ...

    def insert(self, document: Mapping[str, Any], now: datetime | None = None) -> Reservation: ...

    def find_by_id(self, booking_id: str) -> Reservation | None: ...

    def update_by_id(
        self, booking_id: str, changes: Mapping[str, Any], now: datetime | None = None
    ) -> Reservation | None: ...

    def delete_by_id(self, booking_id: str) -> Reservation | None: ...

    def record_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None: ...


class YamlDataDirectory:
    """A directory of YAML files, each holding a top-level list of mappings.

    Every read-modify-write goes through ``lock`` so two writers in the same
    process never drop each other's rows.
    """

    def __init__(self, base_dir: str | Path = "data") -> None:
        self.base_dir = Path(base_dir)
        self.log_file = self.base_dir / EVENTS_FILE
        self.lock = threading.RLock()
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise StoreUnavailableError(f"Cannot create data directory: {self.base_dir}") from error
        self.ensure_file(self.log_file)

    def path_for(self, name: str) -> Path:
        path = self.base_dir / name
        self.ensure_file(path)
        return path

    def ensure_file(self, path: Path) -> None:
        if path.exists():
            return
        try:
            path.write_text("[]\n", encoding="utf-8")
        except OSError as error:
            raise StoreUnavailableError(f"Cannot create YAML file: {path}") from error

    def read_list(self, path: Path) -> list[dict[str, Any]]:
        payload, error = self._load(path)
        if error is not None:
            with self.lock:
                # a writer may have replaced the file since the unlocked read
                payload, error = self._load(path)
                if error is not None:
                    self._recover_corrupted_yaml(path, error)
                    return []

        if payload is None:
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            elif path != self.log_file:
                self.log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _load(self, path: Path) -> tuple[Any, Exception | None]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            self.ensure_file(path)
            return None, None
        except (UnicodeDecodeError, yaml.YAMLError) as error:
            return None, error
        except OSError as error:
            raise StoreUnavailableError(f"Failed to read YAML file: {path}") from error

        if payload is not None and not isinstance(payload, list):
            return None, ValueError("top-level YAML is not a list")
        return payload, None

    def write_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise StoreUnavailableError(f"Failed to write YAML file: {path}") from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        with self.lock:
            events = self.read_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self.write_list(self.log_file, events)
        logger.debug("%s %s", event_type, payload)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            logger.warning("Could not back up corrupted YAML file %s", path)

        logger.warning("Recovered corrupted YAML file %s: %s", path.name, error)
        self.write_list(path, [])
        if path != self.log_file:
            self.log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )


class BookingYamlCollection:
    """Reservation documents kept in ``bookings.yaml``, in insertion order."""

    def __init__(
        self,
        data: YamlDataDirectory | str | Path = "data",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.data = data if isinstance(data, YamlDataDirectory) else YamlDataDirectory(data)
        self.bookings_file = self.data.path_for(BOOKINGS_FILE)
        self.clock: Callable[[], datetime] = clock or datetime.now

    def all(self) -> list[Reservation]:
        rows = self.data.read_list(self.bookings_file)
        records = (self._parse_row(index, row) for index, row in enumerate(rows))
        return [record for record in records if record is not None]

    def find(self, **filters: Any) -> list[Reservation]:
        for key in filters:
            if key not in Reservation.__dataclass_fields__:
                raise ValueError(f"Unknown booking filter: {key}")
        return [
            record
            for record in self.all()
            if all(getattr(record, key) == value for key, value in filters.items())
        ]

    def find_by_id(self, booking_id: str) -> Reservation | None:
        for record in self.all():
            if record.id == booking_id:
                return record
        return None

    def insert(self, document: Mapping[str, Any], now: datetime | None = None) -> Reservation:
        effective_now = (now or self.clock()).replace(microsecond=0)
        record = Reservation(
            id=uuid4().hex,
            user=str(document["user"]),
            date=document["date"],
            start_time=str(document["start_time"]),
            end_time=str(document["end_time"]),
            created_at=effective_now,
            updated_at=effective_now,
        )
        with self.data.lock:
            rows = self.data.read_list(self.bookings_file)
            rows.append(record.to_dict())
            self.data.write_list(self.bookings_file, rows)

        self.record_event(
            "BOOKING_CREATED",
            {
                "id": record.id,
                "user": record.user,
                "date": record.date.isoformat(),
                "startTime": record.start_time,
                "endTime": record.end_time,
            },
            effective_now,
        )
        return record

    def update_by_id(
        self,
        booking_id: str,
        changes: Mapping[str, Any],
        now: datetime | None = None,
    ) -> Reservation | None:
        for key in changes:
            if key not in UPDATABLE_FIELDS:
                raise ValueError(f"Field cannot be updated: {key}")

        effective_now = (now or self.clock()).replace(microsecond=0)
        with self.data.lock:
            rows = self.data.read_list(self.bookings_file)
            found_index = self._index_of(rows, booking_id)
            if found_index < 0:
                return None

            current = Reservation.from_dict(rows[found_index])
            updated = replace(current, **dict(changes), updated_at=effective_now)
            rows[found_index] = updated.to_dict()
            self.data.write_list(self.bookings_file, rows)

        self.record_event(
            "BOOKING_UPDATED",
            {
                "id": booking_id,
                "fields": sorted(changes),
                "date": updated.date.isoformat(),
                "startTime": updated.start_time,
                "endTime": updated.end_time,
            },
            effective_now,
        )
        return updated

    def delete_by_id(self, booking_id: str) -> Reservation | None:
        with self.data.lock:
            rows = self.data.read_list(self.bookings_file)
            found_index = self._index_of(rows, booking_id)
            if found_index < 0:
                return None

            removed = Reservation.from_dict(rows.pop(found_index))
            self.data.write_list(self.bookings_file, rows)

        self.record_event("BOOKING_DELETED", {"id": booking_id, "date": removed.date.isoformat()})
        return removed

    def record_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        self.data.log_event(event_type, payload, event_time)

    def _parse_row(self, index: int, row: dict[str, Any]) -> Reservation | None:
        try:
            return Reservation.from_dict(row)
        except (KeyError, TypeError, ValueError) as error:
            self.record_event(
                "YAML_ROW_SKIPPED",
                {
                    "file": str(self.bookings_file.name),
                    "index": index,
                    "reason": f"row is not a complete booking: {error!r}",
                },
            )
            return None

    def _index_of(self, rows: list[dict[str, Any]], booking_id: str) -> int:
        for index, row in enumerate(rows):
            if str(row.get("id")) == booking_id and self._parse_row(index, row) is not None:
                return index
        return -1
