# backend/app/services/unified_slot_generator.py
"""
Unified Slot Generator for the scheduling platform

The single entry point for slots. Manual booking, AI-assisted booking and
rescheduling all call ``generate_slots`` and receive the same ordered list
for the same parameters; ``channel`` only labels logs and metrics.

Errors are normalized into ``SlotGenerationResult.error`` so callers check
one field to tell "no availability" (empty slots, no error) from a failure.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.date_utils import DateUtility, add_days, generate_week_dates
from ..core.exceptions import DomainException, ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.availability import (
    DayAvailabilitySummary,
    Slot,
    SlotGenerationError,
    SlotGenerationParams,
    SlotGenerationResult,
)
from .availability_engine import AvailabilityEngine
from .base import BaseService
from .slot_generator import deduplicate_slots

logger = logging.getLogger(__name__)


class UnifiedSlotGenerator(BaseService):
    """Façade over the availability engine shared by every booking flow."""

    def __init__(
        self,
        availability_engine: AvailabilityEngine,
        date_utility: DateUtility,
        db: Optional[Session] = None,
    ):
        super().__init__(db)
        self.availability_engine = availability_engine
        self.date_utility = date_utility

    @BaseService.measure_operation("generate_slots")
    def generate_slots(self, params: SlotGenerationParams) -> SlotGenerationResult:
        """
        Generate slots for an organization/date/doctor/duration/role.

        Resolve policy, build the candidate grid, mark conflicts, filter by
        role and policy, deduplicate, sort by start time then doctor.
        """
        try:
            slots = self.availability_engine.calculate_availability(
                organization_id=params.organization_id,
                date=params.date,
                doctor_id=params.doctor_id,
                duration=params.duration,
                role=params.user_role,
                use_configurable_rules=params.use_configurable_rules,
                use_standard_rules=params.use_standard_rules,
            )
        except DomainException as e:
            log = self.logger.error if isinstance(e, ServiceException) else self.logger.warning
            log(
                f"Slot generation failed [{params.channel.value}] "
                f"{params.organization_id} {params.date}: {e.code} {e.message}"
            )
            return SlotGenerationResult(
                slots=[],
                error=SlotGenerationError(code=e.code, message=e.message, details=e.details),
            )

        slots = deduplicate_slots(slots)
        available = sum(1 for slot in slots if slot.available)
        prometheus_metrics.record_slots_generated(
            params.channel.value, available, len(slots) - available
        )
        self.logger.info(
            f"Generated {len(slots)} slots ({available} available) "
            f"[{params.channel.value}] for {params.organization_id} on {params.date}"
        )
        return SlotGenerationResult(slots=slots)

    @BaseService.measure_operation("generate_week_availability")
    def generate_week_availability(
        self, params: SlotGenerationParams, week_start: str
    ) -> List[DayAvailabilitySummary]:
        """
        Per-date slot counts for the seven days starting at ``week_start``.

        Raises:
            ValidationException: ``week_start`` is malformed or displaced
        """
        start = self.date_utility.require_date(week_start, component=self.__class__.__name__)

        summaries: List[DayAvailabilitySummary] = []
        for day in generate_week_dates(start):
            result = self.generate_slots(params.model_copy(update={"date": day}))
            summaries.append(
                DayAvailabilitySummary(
                    date=day,
                    total_slots=len(result.slots),
                    available_slots=result.available_count,
                    error=result.error,
                )
            )
        return summaries

    @BaseService.measure_operation("find_next_available_slot")
    def find_next_available_slot(
        self, params: SlotGenerationParams, days_ahead: int = 14
    ) -> Optional[Slot]:
        """
        First available slot on ``params.date`` or one of the following days.

        Looks at ``days_ahead`` dates in total. Stops at the first date that
        fails with an error.

        Raises:
            ValidationException: ``params.date`` is malformed or displaced
        """
        start = self.date_utility.require_date(params.date, component=self.__class__.__name__)

        for day in generate_dates(start, days_ahead):
            result = self.generate_slots(params.model_copy(update={"date": day}))
            if result.error is not None:
                self.logger.warning(f"Stopped next-slot search at {day}: {result.error.code}")
                return None
            for slot in result.slots:
                if slot.available:
                    return slot
        return None


def generate_dates(start: str, count: int) -> List[str]:
    """``count`` consecutive dates beginning at ``start``."""
    return [add_days(start, offset) for offset in range(max(0, count))]
