"""
Month-level index of days that may have openings.
"""

from typing import Iterable, List

import pendulum
from pendulum import Date

from .models import AvailabilityRule, weekday_index


def available_days(rules: Iterable[AvailabilityRule], year: int, month: int) -> List[Date]:
    """
    List the days of a month whose weekday has at least one rule.

    This only answers "might this date have openings": a listed day can
    still yield zero slots once its bookings are taken into account.

    Raises:
        ValueError: If month is not between 1 and 12
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")

    open_weekdays = {rule.day_of_week for rule in rules}
    if not open_weekdays:
        return []

    first = pendulum.date(year, month, 1)

    return [
        day
        for day in (first.add(days=offset) for offset in range(first.days_in_month))
        if weekday_index(day) in open_weekdays
    ]
