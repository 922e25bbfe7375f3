"""
Core business logic for calculating bookable time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no store access, no I/O).
"""

from dataclasses import dataclass
from typing import Iterable, List

from .models import Interval, TimeSlot, subtract


@dataclass(frozen=True)
class AlignmentPolicy:
    """
    Where the first slot of a free fragment may start.

    Fragments that open right after a travel buffer start on the
    ``buffer_grid_minutes`` grid, all others on ``hour_grid_minutes``.
    """
    hour_grid_minutes: int = 60
    buffer_grid_minutes: int = 30
    buffer_tolerance_minutes: int = 1

    def __post_init__(self):
        if self.hour_grid_minutes <= 0 or self.buffer_grid_minutes <= 0:
            raise ValueError("Alignment grids must be greater than zero")
        if self.buffer_tolerance_minutes < 0:
            raise ValueError("buffer_tolerance_minutes must be >= 0")


class SlotCalculator:
    """
    Partitions open time minus forbidden time into fixed-length slots.

    Algorithm:
    1. Subtract all forbidden intervals from each open interval
    2. Align the first slot of each free fragment to its grid
    3. Emit back-to-back slots until the next one would pass the fragment end
    4. Return slots ordered by start, never overlapping each other
    """

    def __init__(self, policy: AlignmentPolicy | None = None):
        self.policy = policy or AlignmentPolicy()

    def generate_slots(
        self,
        open_intervals: Iterable[Interval],
        forbidden: Iterable[Interval],
        slot_duration_minutes: int = 60,
    ) -> List[TimeSlot]:
        """
        Generate the bookable slots for one location and date.

        Args:
            open_intervals: Open time from the expanded availability rules
            forbidden: Intervals from the conflict aggregator
            slot_duration_minutes: Length of every emitted slot

        Returns:
            List of available TimeSlot objects in ascending start order
        """
        if slot_duration_minutes <= 0:
            raise ValueError(
                f"slot_duration_minutes must be greater than zero, got {slot_duration_minutes}"
            )

        forbidden_list = list(forbidden)
        slots: List[TimeSlot] = []

        # Each rule is handled on its own; gaps between rules stay closed
        for open_interval in open_intervals:
            for fragment in subtract(open_interval, forbidden_list):
                slots.extend(
                    self._slots_in_fragment(fragment, forbidden_list, slot_duration_minutes)
                )

        return self._drop_overlapping(slots)

    def _slots_in_fragment(
        self,
        fragment: Interval,
        forbidden: List[Interval],
        slot_duration_minutes: int,
    ) -> List[TimeSlot]:
        """
        Fill one free fragment with consecutive slots.

        Example (60 min, fragment 13:30-17:00 right after a travel buffer):
        Result: [13:30-14:30, 14:30-15:30, 15:30-16:30]
        """
        slots: List[TimeSlot] = []
        current = self._aligned_start(fragment, forbidden)

        while current + slot_duration_minutes <= fragment.end:
            slots.append(TimeSlot(start=current, end=current + slot_duration_minutes))
            current += slot_duration_minutes

        return slots

    def _aligned_start(self, fragment: Interval, forbidden: List[Interval]) -> int:
        """Round the fragment start up to the grid that applies to it."""
        if self._follows_travel_buffer(fragment, forbidden):
            grid = self.policy.buffer_grid_minutes
        else:
            grid = self.policy.hour_grid_minutes

        return -(-fragment.start // grid) * grid

    def _follows_travel_buffer(self, fragment: Interval, forbidden: List[Interval]) -> bool:
        tolerance = self.policy.buffer_tolerance_minutes
        return any(
            cut.travel_buffer and abs(fragment.start - cut.end) <= tolerance
            for cut in forbidden
        )

    @staticmethod
    def _drop_overlapping(slots: List[TimeSlot]) -> List[TimeSlot]:
        """
        Sort slots by start and drop any that overlap an earlier one.

        Only overlapping rules for the same weekday can produce such slots.
        """
        result: List[TimeSlot] = []

        for slot in sorted(slots, key=lambda s: (s.start, s.end)):
            if result and slot.start < result[-1].end:
                continue
            result.append(slot)

        return result
