"""
Application services for computing availability and recording bookings.

The service coordinates fetching owner records via a store adapter and
delegates the actual slot computation to the domain layer. Dependency
inversion toward a protocol keeps the CLI thin and lets tests plug in a
stub store.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol

from pendulum import Date

from ..domain.availability_index import available_days
from ..domain.conflicts import collect_forbidden_intervals
from ..domain.exceptions import RecordConflictError, SlotUnavailableError
from ..domain.models import (
    Area,
    AvailabilityRule,
    BookedSlot,
    Location,
    TimeSlot,
    load_records,
    parse_date_string,
)
from ..domain.rule_expander import expand_rules
from ..domain.slot_calculator import SlotCalculator
from .cache import RecordCache

logger = logging.getLogger(__name__)

LOCATIONS = "locations"
AREAS = "areas"
AVAILABILITY_RULES = "availability_rules"
BOOKED_SLOTS = "booked_slots"

COLLECTIONS = (LOCATIONS, AREAS, AVAILABILITY_RULES, BOOKED_SLOTS)


class RecordStoreProtocol(Protocol):
    """Protocol describing the storage behaviour needed by the service."""

    async def list_records(self, owner_id: str, collection: str) -> List[Dict[str, Any]]:
        """Return all raw records of one collection for an owner."""

    async def add_record(self, owner_id: str, collection: str, record: Dict[str, Any]) -> None:
        """Store a record under its ``id``."""

    async def update_record(
        self,
        owner_id: str,
        collection: str,
        record_id: str,
        record: Dict[str, Any],
    ) -> None:
        """Replace an existing record. Raises RecordNotFoundError if absent."""

    async def delete_record(self, owner_id: str, collection: str, record_id: str) -> None:
        """Delete a record if it exists."""


@dataclass(frozen=True)
class OwnerRecords:
    """All records of one owner that the availability engine reads."""
    locations: List[Location] = field(default_factory=list)
    areas: List[Area] = field(default_factory=list)
    rules: List[AvailabilityRule] = field(default_factory=list)
    bookings: List[BookedSlot] = field(default_factory=list)

    def find_location(self, location_id: str) -> Location | None:
        for location in self.locations:
            if location.id == location_id:
                return location
        return None

    def find_area(self, name: str) -> Area | None:
        for area in self.areas:
            if area.name == name:
                return area
        return None


def _require_owner(owner_id: str | None) -> None:
    if not owner_id:
        raise ValueError("owner_id is required for writes")


def _coerce_day(day: Date | str) -> Date:
    if isinstance(day, str):
        return parse_date_string(day)
    return day


class AvailabilityService:
    """
    Orchestrates record retrieval, slot computation and owner writes.

    Read paths degrade to empty results when the owner, the location or the
    rules are missing. Store failures propagate as StorageError so callers
    can tell "no slots" apart from "could not determine slots".
    """

    def __init__(
        self,
        store: RecordStoreProtocol,
        slot_calculator: SlotCalculator | None = None,
        cache: RecordCache | None = None,
    ) -> None:
        self._store = store
        self._slot_calculator = slot_calculator or SlotCalculator()
        self._cache = cache

    # -- reads -------------------------------------------------------------

    async def fetch_records(self, owner_id: str, *, use_cache: bool = True) -> OwnerRecords:
        """
        Fetch the four record collections of an owner concurrently.

        Malformed records are skipped; the rest are returned as models.
        """
        if use_cache and self._cache is not None:
            cached = self._cache.get(owner_id)
            if cached is not None:
                logger.debug("Using cached records for owner %s", owner_id)
                return cached

        generation = self._cache.generation(owner_id) if self._cache is not None else None

        raw_locations, raw_areas, raw_rules, raw_bookings = await asyncio.gather(
            *(self._store.list_records(owner_id, collection) for collection in COLLECTIONS)
        )

        records = OwnerRecords(
            locations=load_records(Location, raw_locations),
            areas=load_records(Area, raw_areas),
            rules=load_records(AvailabilityRule, raw_rules),
            bookings=load_records(BookedSlot, raw_bookings),
        )

        if self._cache is not None:
            self._cache.put(owner_id, records, generation=generation)

        return records

    async def compute_available_slots(
        self,
        owner_id: str | None,
        location_id: str,
        day: Date | str,
        slot_duration_minutes: int = 60,
        *,
        use_cache: bool = True,
    ) -> List[TimeSlot]:
        """
        Compute the bookable slots of a location for one day.

        Returns an empty list when there is no owner, the location is
        unknown, or no rule matches the weekday.
        """
        if not owner_id:
            logger.info("No owner given, nothing is available")
            return []

        target_day = _coerce_day(day)
        records = await self.fetch_records(owner_id, use_cache=use_cache)

        return self.calculate_slots(
            records=records,
            location_id=location_id,
            day=target_day,
            slot_duration_minutes=slot_duration_minutes,
        )

    def calculate_slots(
        self,
        *,
        records: OwnerRecords,
        location_id: str,
        day: Date,
        slot_duration_minutes: int = 60,
    ) -> List[TimeSlot]:
        """Calculate slots from already fetched records."""
        location = records.find_location(location_id)
        if location is None:
            logger.info("Unknown location %s, nothing is available", location_id)
            return []

        open_intervals = expand_rules(records.rules, day)
        if not open_intervals:
            logger.debug("No rules for %s", day.isoformat())
            return []

        area = records.find_area(location.area) if location.area else None
        buffer_minutes = area.travel_buffer_minutes if area else 0

        forbidden = collect_forbidden_intervals(
            location=location,
            day=day,
            bookings=records.bookings,
            locations=records.locations,
            buffer_minutes=buffer_minutes,
        )

        return self._slot_calculator.generate_slots(
            open_intervals=open_intervals,
            forbidden=forbidden,
            slot_duration_minutes=slot_duration_minutes,
        )

    async def compute_available_days(
        self,
        owner_id: str | None,
        month: int,
        year: int,
    ) -> List[Date]:
        """List the days of a month whose weekday has at least one rule."""
        if not owner_id:
            return []

        records = await self.fetch_records(owner_id)
        return available_days(records.rules, year=year, month=month)

    async def list_locations(self, owner_id: str) -> List[Location]:
        return list((await self.fetch_records(owner_id)).locations)

    async def list_areas(self, owner_id: str) -> List[Area]:
        return list((await self.fetch_records(owner_id)).areas)

    async def list_availability_rules(self, owner_id: str) -> List[AvailabilityRule]:
        rules = (await self.fetch_records(owner_id)).rules
        return sorted(rules, key=lambda r: (r.day_of_week, r.interval().start))

    async def list_booked_slots(
        self,
        owner_id: str,
        day: Date | str | None = None,
    ) -> List[BookedSlot]:
        """List bookings, optionally only those of one day, by date and start."""
        bookings = (await self.fetch_records(owner_id)).bookings

        if day is not None:
            date_str = _coerce_day(day).isoformat()
            bookings = [b for b in bookings if b.date == date_str]

        return sorted(bookings, key=lambda b: (b.date, b.interval().start))

    # -- writes ------------------------------------------------------------

    async def add_location(self, owner_id: str, *, name: str, area: str = "") -> Location:
        location = Location(id=str(uuid.uuid4()), name=name, area=area)
        await self._write(owner_id, self._store.add_record, LOCATIONS, location.to_record())
        return location

    async def update_location(self, owner_id: str, location: Location) -> None:
        await self._write(
            owner_id, self._store.update_record, LOCATIONS, location.id, location.to_record()
        )

    async def delete_location(self, owner_id: str, location_id: str) -> None:
        await self._write(owner_id, self._store.delete_record, LOCATIONS, location_id)

    async def add_area(self, owner_id: str, *, name: str, travel_buffer_minutes: int = 0) -> Area:
        """
        Create an area.

        Raises:
            RecordConflictError: If the owner already has an area with this name
        """
        _require_owner(owner_id)
        area = Area(name=name, travel_buffer_minutes=travel_buffer_minutes)

        existing = await self.fetch_records(owner_id, use_cache=False)
        if existing.find_area(name) is not None:
            raise RecordConflictError(f"Area '{name}' already exists")

        await self._write(owner_id, self._store.add_record, AREAS, area.to_record())
        return area

    async def update_area(self, owner_id: str, area: Area) -> None:
        await self._write(owner_id, self._store.update_record, AREAS, area.id, area.to_record())

    async def delete_area(self, owner_id: str, name: str) -> None:
        await self._write(owner_id, self._store.delete_record, AREAS, name)

    async def add_availability_rule(
        self,
        owner_id: str,
        *,
        day_of_week: int,
        start_time: str,
        end_time: str,
    ) -> AvailabilityRule:
        rule = AvailabilityRule(
            id=str(uuid.uuid4()),
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
        )
        await self._write(owner_id, self._store.add_record, AVAILABILITY_RULES, rule.to_record())
        return rule

    async def update_availability_rule(self, owner_id: str, rule: AvailabilityRule) -> None:
        await self._write(
            owner_id, self._store.update_record, AVAILABILITY_RULES, rule.id, rule.to_record()
        )

    async def delete_availability_rule(self, owner_id: str, rule_id: str) -> None:
        await self._write(owner_id, self._store.delete_record, AVAILABILITY_RULES, rule_id)

    async def book_slot(
        self,
        owner_id: str,
        *,
        location_id: str,
        day: Date | str,
        start_time: str,
        end_time: str,
        customer_name: str,
        customer_email: str,
    ) -> BookedSlot:
        """
        Record a booking for a window that is currently offered.

        Availability is recomputed from fresh records, bypassing the cache.

        Raises:
            ValueError: If customer details are missing or the booking is malformed
            SlotUnavailableError: If the window is not an available slot
        """
        _require_owner(owner_id)
        if not customer_name.strip():
            raise ValueError("customer_name must not be empty")
        if "@" not in customer_email:
            raise ValueError(f"Invalid customer email: {customer_email!r}")

        target_day = _coerce_day(day)
        booking = BookedSlot(
            id=str(uuid.uuid4()),
            location_id=location_id,
            date=target_day.isoformat(),
            start_time=start_time,
            end_time=end_time,
            customer_name=customer_name.strip(),
            customer_email=customer_email.strip(),
        )
        requested = booking.interval()

        slots = await self.compute_available_slots(
            owner_id,
            location_id,
            target_day,
            slot_duration_minutes=requested.duration_minutes(),
            use_cache=False,
        )
        if not any(slot.start == requested.start and slot.end == requested.end for slot in slots):
            raise SlotUnavailableError(
                f"{start_time}-{end_time} on {booking.date} is not available at location {location_id}"
            )

        await self._write(owner_id, self._store.add_record, BOOKED_SLOTS, booking.to_record())
        logger.info("Booked %s %s-%s at %s", booking.date, start_time, end_time, location_id)
        return booking

    async def delete_booked_slot(self, owner_id: str, booking_id: str) -> None:
        await self._write(owner_id, self._store.delete_record, BOOKED_SLOTS, booking_id)

    async def _write(self, owner_id: str, operation, *args) -> None:
        _require_owner(owner_id)

        try:
            await operation(owner_id, *args)
        finally:
            if self._cache is not None:
                self._cache.invalidate(owner_id)
