# backend/app/services/availability_engine.py
"""
Availability Engine for the scheduling platform

Combines the candidate slot grid with existing appointments and
availability blocks, then optionally filters by tenant booking policy.

Steps for one organization/date:
1. Active working intervals for the date's day of week (optional doctor filter)
2. Candidate grid per doctor (SlotGenerator)
3. Blocking appointments and blocks for the same doctors
4. Mark overlapping slots unavailable with a reason ("Ocupado" or the block's reason)
5. With configurable rules: an empty list when the whole day is disallowed,
   otherwise drop every slot whose start time fails the policy

Repository failures become AvailabilityCalculationException; "no slots"
is an empty list.
"""

from datetime import datetime
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.constants import REASON_BLOCKED, REASON_OCCUPIED
from ..core.date_utils import DateUtility, day_of_week, intervals_overlap, parse_time
from ..core.enums import ActorRole
from ..core.exceptions import AvailabilityCalculationException, RepositoryException
from ..repositories.schedule_repository import ScheduleRepository
from ..schemas.availability import AppointmentRecord, AvailabilityBlockRecord, Slot
from .base import BaseService
from .booking_policy_resolver import BookingPolicyResolver
from .booking_validation_service import BookingValidationService
from .slot_generator import SlotGenerator, deduplicate_slots, validate_duration

logger = logging.getLogger(__name__)

# Occupied minute ranges per doctor, with the reason to show
BusyMap = Dict[str, List[Tuple[int, int, str]]]


class AvailabilityEngine(BaseService):
    """Slot availability for one organization and date."""

    def __init__(
        self,
        schedule_repository: ScheduleRepository,
        date_utility: DateUtility,
        policy_resolver: BookingPolicyResolver,
        validation_service: BookingValidationService,
        slot_generator: Optional[SlotGenerator] = None,
        db: Optional[Session] = None,
    ):
        super().__init__(db)
        self.schedule_repository = schedule_repository
        self.date_utility = date_utility
        self.policy_resolver = policy_resolver
        self.validation_service = validation_service
        self.slot_generator = slot_generator or SlotGenerator()

    @BaseService.measure_operation("calculate_availability")
    def calculate_availability(
        self,
        organization_id: str,
        date: str,
        doctor_id: Optional[str] = None,
        duration: int = 30,
        role: ActorRole = ActorRole.PATIENT,
        use_configurable_rules: bool = True,
        use_standard_rules: bool = False,
    ) -> List[Slot]:
        """
        Compute slots for a date, marked available or not.

        Args:
            organization_id: Tenant
            date: ``YYYY-MM-DD``; displaced or malformed dates raise
            doctor_id: Restrict to one doctor
            duration: Slot length in minutes
            role: Actor asking, for policy filtering
            use_configurable_rules: Apply the tenant booking policy
            use_standard_rules: Apply patient rules to privileged roles too

        Returns:
            Deduplicated slots sorted by start time then doctor

        Raises:
            ValidationException: Malformed date or duration
            DateDisplacementException: Date would shift calendar day
            AvailabilityCalculationException: Schedule data could not be read
        """
        target_date = self.date_utility.require_date(date, component=self.__class__.__name__)
        validate_duration(duration)

        policy = None
        if use_configurable_rules:
            policy = self.policy_resolver.get_booking_settings(organization_id)
            day_rejection = self.validation_service.evaluate_day(
                policy, target_date, role, use_standard_rules
            )
            if day_rejection is not None:
                self.logger.debug(
                    f"{target_date} disallowed for {role.value}: {day_rejection.code.value}"
                )
                return []

        try:
            intervals = self.schedule_repository.get_working_intervals(
                organization_id, day_of_week(target_date), doctor_id
            )
            candidates = self.slot_generator.generate_candidate_slots(
                target_date, intervals, duration
            )
            if not candidates:
                return []

            doctor_ids = sorted({slot.doctor_id for slot in candidates})
            appointments = self.schedule_repository.get_blocking_appointments(
                organization_id, target_date, doctor_ids
            )
            day_start, day_end = self.date_utility.day_bounds(target_date)
            blocks = self.schedule_repository.get_blocks(
                organization_id, day_start, day_end, doctor_ids
            )
        except RepositoryException as e:
            self.logger.error(
                f"Availability calculation failed for {organization_id} on {target_date}: {str(e)}"
            )
            raise AvailabilityCalculationException(
                details={"organization_id": organization_id, "date": target_date}
            ) from e

        busy = self._build_busy_map(appointments, blocks, day_start)
        slots = [self._mark(slot, busy) for slot in candidates]

        if policy is not None:
            slots = [
                slot
                for slot in slots
                if self.validation_service.evaluate_rules(
                    policy, target_date, slot.start_time, role, use_standard_rules
                ).is_valid
            ]

        result = deduplicate_slots(slots)
        self.logger.debug(
            f"{len(result)} slots for {organization_id} on {target_date} "
            f"({len(candidates)} candidates, {len(appointments)} appointments, {len(blocks)} blocks)"
        )
        return result

    def _build_busy_map(
        self,
        appointments: Sequence[AppointmentRecord],
        blocks: Sequence[AvailabilityBlockRecord],
        day_start: datetime,
    ) -> BusyMap:
        busy: BusyMap = {}
        # Appointments first so "Ocupado" wins over a block on the same range
        for appointment in appointments:
            if not appointment.is_blocking:
                continue
            busy.setdefault(appointment.doctor_id, []).append(
                (
                    parse_time(appointment.start_time),
                    parse_time(appointment.end_time),
                    REASON_OCCUPIED,
                )
            )
        for block in blocks:
            start = self.date_utility.minutes_into_day(day_start, block.start_datetime)
            end = self.date_utility.minutes_into_day(day_start, block.end_datetime)
            if end <= start:
                continue
            busy.setdefault(block.doctor_id, []).append((start, end, block.reason or REASON_BLOCKED))
        return busy

    @staticmethod
    def _mark(slot: Slot, busy: BusyMap) -> Slot:
        start = parse_time(slot.start_time)
        end = start + slot.duration_minutes
        for busy_start, busy_end, reason in busy.get(slot.doctor_id, ()):
            if intervals_overlap(start, end, busy_start, busy_end):
                return slot.model_copy(update={"available": False, "reason": reason})
        return slot
