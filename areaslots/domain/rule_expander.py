"""
Expansion of weekly availability rules into open intervals for one date.
"""

from typing import Iterable, List

from pendulum import Date

from .models import AvailabilityRule, Interval, weekday_index


def rules_for_day(rules: Iterable[AvailabilityRule], day: Date) -> List[AvailabilityRule]:
    """Return the rules whose weekday matches ``day`` (Sunday=0)."""
    weekday = weekday_index(day)
    return [rule for rule in rules if rule.day_of_week == weekday]


def expand_rules(rules: Iterable[AvailabilityRule], day: Date) -> List[Interval]:
    """
    Turn the rules matching ``day`` into open intervals.

    Rules are kept as separate intervals even when they touch, since gaps
    between morning and afternoon blocks are intentional. An empty result
    means the owner is closed on that weekday.
    """
    return [rule.interval() for rule in rules_for_day(rules, day)]
