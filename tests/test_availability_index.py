"""
Tests for the month availability index.
"""

import pendulum
import pytest

from areaslots.domain.availability_index import available_days
from areaslots.domain.models import AvailabilityRule


def _rule(day_of_week: int, rule_id: str = "") -> AvailabilityRule:
    return AvailabilityRule(
        id=rule_id or f"r{day_of_week}",
        day_of_week=day_of_week,
        start_time="09:00",
        end_time="17:00",
    )


class TestAvailableDays:
    """Tests for available_days."""

    def test_only_days_with_rules(self):
        """Mondays of November 2024 are the 4th, 11th, 18th and 25th."""
        days = available_days([_rule(1), _rule(1, "second-monday-rule")], 2024, 11)

        assert days == [
            pendulum.date(2024, 11, 4),
            pendulum.date(2024, 11, 11),
            pendulum.date(2024, 11, 18),
            pendulum.date(2024, 11, 25),
        ]
        assert pendulum.date(2024, 11, 26) not in days

    def test_leap_year_february_has_29_days(self):
        every_day = [_rule(day) for day in range(7)]

        days = available_days(every_day, 2024, 2)

        assert len(days) == 29
        assert days[-1] == pendulum.date(2024, 2, 29)

    def test_leap_day_is_filtered_by_weekday(self):
        """29 February 2024 is a Thursday."""
        days = available_days([_rule(4)], 2024, 2)

        assert [day.day for day in days] == [1, 8, 15, 22, 29]

    def test_common_year_february(self):
        every_day = [_rule(day) for day in range(7)]

        assert len(available_days(every_day, 2023, 2)) == 28

    def test_no_rules(self):
        assert available_days([], 2024, 11) == []

    def test_invalid_month(self):
        with pytest.raises(ValueError, match="between 1 and 12"):
            available_days([_rule(1)], 2024, 13)
