# backend/app/services/slot_generator.py
"""
Slot Generator for the scheduling platform

Turns working intervals into the candidate slot grid for one date. The
grid depends only on its inputs (no booking state, no "now"), which is what
lets every booking flow reproduce the same slots.
"""

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from ..core.config import settings
from ..core.date_utils import format_minutes
from ..core.exceptions import ValidationException
from ..schemas.availability import Slot, WorkingInterval
from .base import BaseService

logger = logging.getLogger(__name__)


def build_slot_id(doctor_id: str, date: str, start_time: str) -> str:
    return f"{doctor_id}-{date}-{start_time}"


def validate_duration(duration: int) -> int:
    """Reject durations outside the configured range."""
    if isinstance(duration, bool) or not isinstance(duration, int):
        raise ValidationException(
            f"Duration must be an integer number of minutes, got {duration!r}",
            code="INVALID_DURATION",
        )
    low = settings.min_slot_duration_minutes
    high = settings.max_slot_duration_minutes
    if not low <= duration <= high:
        raise ValidationException(
            f"Duration must be between {low} and {high} minutes, got {duration}",
            code="INVALID_DURATION",
            details={"min": low, "max": high, "duration": duration},
        )
    return duration


def sort_slots(slots: Iterable[Slot]) -> List[Slot]:
    """Order by start time, then doctor id for stability."""
    return sorted(slots, key=lambda slot: (slot.date, slot.start_time, slot.doctor_id))


def deduplicate_slots(slots: Iterable[Slot]) -> List[Slot]:
    """
    Keep one slot per (doctor, date, start, end), preferring an available one.

    Among unavailable duplicates the first seen wins. The result is sorted.
    """
    unique: Dict[Tuple[str, str, str, str], Slot] = {}
    for slot in slots:
        key = (slot.doctor_id, slot.date, slot.start_time, slot.end_time)
        existing = unique.get(key)
        if existing is None or (slot.available and not existing.available):
            unique[key] = slot
    return sort_slots(unique.values())


class SlotGenerator(BaseService):
    """Pure candidate grid generation."""

    @BaseService.measure_operation("generate_candidate_slots")
    def generate_candidate_slots(
        self,
        date: str,
        intervals: Sequence[WorkingInterval],
        duration: int,
    ) -> List[Slot]:
        """
        Generate every ``duration``-minute slot inside each working interval.

        Each interval yields its own run from its start time; a final partial
        slot that would pass the interval end is dropped. Runs are
        concatenated and sorted. Duplicates from overlapping intervals are
        kept here and removed by ``deduplicate_slots``.

        Args:
            date: Normalized ``YYYY-MM-DD`` date
            intervals: Working intervals for that date
            duration: Slot length in minutes

        Returns:
            Candidate slots, all marked available
        """
        validate_duration(duration)

        slots: List[Slot] = []
        for interval in intervals:
            if not interval.is_active:
                continue
            start = interval.start_minutes
            end = interval.end_minutes
            while start + duration <= end:
                start_time = format_minutes(start)
                slots.append(
                    Slot(
                        id=build_slot_id(interval.doctor_id, date, start_time),
                        doctor_id=interval.doctor_id,
                        date=date,
                        start_time=start_time,
                        end_time=format_minutes(start + duration),
                        duration_minutes=duration,
                    )
                )
                start += duration

        self.logger.debug(
            f"Generated {len(slots)} candidate slots from {len(intervals)} intervals on {date}"
        )
        return sort_slots(slots)
