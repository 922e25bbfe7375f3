"""
Aggregation of forbidden intervals for a location on a given date.
"""

import logging
from typing import Dict, Iterable, List

from pendulum import Date

from .models import BookedSlot, Interval, Location

logger = logging.getLogger(__name__)


def collect_forbidden_intervals(
    location: Location,
    day: Date,
    bookings: Iterable[BookedSlot],
    locations: Iterable[Location],
    buffer_minutes: int,
) -> List[Interval]:
    """
    Collect every interval that must not be offered at ``location`` on ``day``.

    Same-location bookings block exactly their own span. Bookings at other
    locations in the same area block their span widened by ``buffer_minutes``
    on both sides, flagged as travel buffer. Locations in other areas impose
    nothing.

    The result is flat and unmerged; ``subtract`` tolerates overlapping cuts.
    """
    date_str = day.isoformat()
    locations_by_id: Dict[str, Location] = {loc.id: loc for loc in locations}

    forbidden: List[Interval] = []

    for booking in bookings:
        if booking.date != date_str:
            continue

        booked = booking.interval()

        if booking.location_id == location.id:
            forbidden.append(booked)
            continue

        other = locations_by_id.get(booking.location_id)
        if other is None:
            logger.debug(
                "Booking %s references unknown location %s, ignoring",
                booking.id,
                booking.location_id,
            )
            continue

        if not location.area or other.area != location.area:
            continue

        forbidden.append(
            Interval(
                start=booked.start - buffer_minutes,
                end=booked.end + buffer_minutes,
                travel_buffer=buffer_minutes > 0,
            )
        )

    return forbidden
