"""
Domain models for intervals, owner records and bookable slots.
"""

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Type, TypeVar

import pendulum
from pendulum import Date

from .exceptions import InvalidRecordError

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):[0-5][0-9]$")
DATE_FORMAT = "YYYY-MM-DD"

T = TypeVar("T")


def parse_time_string(value: str) -> int:
    """Convert a 24-hour "HH:MM" string to minutes since midnight."""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise InvalidRecordError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date_string(value: str) -> Date:
    """Parse a "YYYY-MM-DD" string into a calendar date."""
    if not isinstance(value, str):
        raise InvalidRecordError(f"Invalid date {value!r}, expected YYYY-MM-DD")
    try:
        return pendulum.from_format(value, DATE_FORMAT).date()
    except ValueError as exc:
        raise InvalidRecordError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc


def weekday_index(day) -> int:
    """Weekday of a date with Sunday=0 ... Saturday=6."""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class Interval:
    """
    Half-open interval ``[start, end)`` in minutes since midnight.

    Intervals are not validated on construction. Subtraction can produce
    empty fragments, which are filtered with ``is_empty()``.
    ``travel_buffer`` marks forbidden intervals that were widened by an
    area's travel buffer.
    """
    start: int
    end: int
    travel_buffer: bool = False

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.end <= self.start

    def overlaps(self, other: "Interval") -> bool:
        """Check if this interval overlaps with another. Touching is not overlapping."""
        if self.is_empty() or other.is_empty():
            return False
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{format_minutes(self.start)} - {format_minutes(self.end)}"


def subtract(base: Interval, cuts: Iterable[Interval]) -> List[Interval]:
    """
    Remove every cut from ``base`` and return what is left, ordered by start.

    Each surviving fragment is split against each cut in turn, so cuts may
    arrive unordered and overlapping.

    Example:
    Base: 09:00 - 17:00
    Cuts: [14:00-15:00, 10:00-11:00, 10:30-12:00]
    Result: [09:00-10:00, 12:00-14:00, 15:00-17:00]
    """
    fragments: List[Interval] = [] if base.is_empty() else [Interval(base.start, base.end)]

    for cut in cuts:
        remaining: List[Interval] = []

        for fragment in fragments:
            if not fragment.overlaps(cut):
                remaining.append(fragment)
                continue

            before = Interval(fragment.start, cut.start)
            after = Interval(cut.end, fragment.end)
            remaining.extend(piece for piece in (before, after) if not piece.is_empty())

        fragments = remaining

    return sorted(fragments, key=lambda fragment: fragment.start)


def _require(record: Mapping[str, Any], key: str) -> Any:
    if not isinstance(record, Mapping):
        raise InvalidRecordError(f"Record must be a mapping, got {type(record).__name__}")
    if key not in record or record[key] is None:
        raise InvalidRecordError(f"Record is missing field '{key}'")
    return record[key]


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise InvalidRecordError(f"{field_name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidRecordError(f"{field_name} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class Location:
    """
    A physical place where appointments happen.

    ``area`` is the name of the Area the location belongs to. An empty area
    means the location shares travel constraints with nobody.
    """
    id: str
    name: str
    area: str = ""

    def __post_init__(self):
        if not self.id:
            raise InvalidRecordError("Location id must not be empty")

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Location":
        return cls(
            id=str(_require(record, "id")),
            name=str(record.get("name") or ""),
            area=str(record.get("area") or ""),
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Area:
    """A named group of locations with a travel buffer between them."""
    name: str
    travel_buffer_minutes: int = 0

    def __post_init__(self):
        if not self.name:
            raise InvalidRecordError("Area name must not be empty")
        if self.travel_buffer_minutes < 0:
            raise InvalidRecordError(
                f"Travel buffer must be >= 0, got {self.travel_buffer_minutes}"
            )

    @property
    def id(self) -> str:
        """Areas are identified by their name."""
        return self.name

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Area":
        return cls(
            name=str(_require(record, "name")),
            travel_buffer_minutes=_as_int(
                record.get("travel_buffer_minutes", 0), "travel_buffer_minutes"
            ),
        )

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.name, **asdict(self)}


@dataclass(frozen=True)
class AvailabilityRule:
    """
    Recurring weekly open time.

    Invariant: end_time is after start_time on the same day.
    """
    id: str
    day_of_week: int  # 0=Sunday, 6=Saturday
    start_time: str
    end_time: str

    def __post_init__(self):
        if isinstance(self.day_of_week, bool) or not isinstance(self.day_of_week, int):
            raise InvalidRecordError(f"day_of_week must be an integer, got {self.day_of_week!r}")
        if not 0 <= self.day_of_week <= 6:
            raise InvalidRecordError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")
        if self.interval().is_empty():
            raise InvalidRecordError(
                f"Rule end {self.end_time} must be after start {self.start_time}"
            )

    def interval(self) -> Interval:
        return Interval(parse_time_string(self.start_time), parse_time_string(self.end_time))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "AvailabilityRule":
        return cls(
            id=str(_require(record, "id")),
            day_of_week=_as_int(_require(record, "day_of_week"), "day_of_week"),
            start_time=_require(record, "start_time"),
            end_time=_require(record, "end_time"),
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BookedSlot:
    """
    An accepted appointment.

    Bookings are never edited once created, only deleted.
    """
    id: str
    location_id: str
    date: str  # YYYY-MM-DD
    start_time: str
    end_time: str
    customer_name: str = ""
    customer_email: str = ""

    def __post_init__(self):
        parse_date_string(self.date)
        if self.interval().is_empty():
            raise InvalidRecordError(
                f"Booking end {self.end_time} must be after start {self.start_time}"
            )

    def interval(self) -> Interval:
        return Interval(parse_time_string(self.start_time), parse_time_string(self.end_time))

    def day(self) -> Date:
        return parse_date_string(self.date)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "BookedSlot":
        return cls(
            id=str(_require(record, "id")),
            location_id=str(_require(record, "location_id")),
            date=_require(record, "date"),
            start_time=_require(record, "start_time"),
            end_time=_require(record, "end_time"),
            customer_name=str(record.get("customer_name") or ""),
            customer_email=str(record.get("customer_email") or ""),
        )

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TimeSlot:
    """
    A bookable candidate window produced by the slot calculator.
    """
    start: int
    end: int
    is_available: bool = True

    @property
    def start_time(self) -> str:
        return format_minutes(self.start)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end)

    def interval(self) -> Interval:
        return Interval(self.start, self.end)

    def duration_minutes(self) -> int:
        return self.end - self.start

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:MM – HH:MM (N min)
        """
        return f"{self.start_time} – {self.end_time} ({self.duration_minutes()} min)"


def load_records(model: Type[T], records: Iterable[Mapping[str, Any]]) -> List[T]:
    """
    Build models from raw store records.

    Malformed records are logged and skipped so one corrupt entry does not
    hide the rest of an owner's data.
    """
    loaded: List[T] = []

    for record in records:
        try:
            loaded.append(model.from_record(record))
        except InvalidRecordError as exc:
            logger.warning("Skipping malformed %s record: %s", model.__name__, exc)

    return loaded
