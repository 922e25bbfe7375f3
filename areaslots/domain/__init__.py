"""
Domain layer - Pure business logic without external dependencies.
"""

from .availability_index import available_days
from .conflicts import collect_forbidden_intervals
from .models import (
    Area,
    AvailabilityRule,
    BookedSlot,
    Interval,
    Location,
    TimeSlot,
    subtract,
)
from .rule_expander import expand_rules
from .slot_calculator import AlignmentPolicy, SlotCalculator

__all__ = [
    "AlignmentPolicy",
    "Area",
    "AvailabilityRule",
    "BookedSlot",
    "Interval",
    "Location",
    "SlotCalculator",
    "TimeSlot",
    "available_days",
    "collect_forbidden_intervals",
    "expand_rules",
    "subtract",
]
