# backend/app/services/booking_validation_service.py
"""
Booking Validation Service for the scheduling platform

Decides whether a date/time may be booked by an actor under the tenant's
booking policy. Rules, in evaluation order:

A. past date (PAST_DATE) or, today, a start time already reached (PAST_TIME)
B. same-day and advance notice (ADVANCE_NOTICE_VIOLATION), patients only
C. booking window [start, end) on the start time (OUTSIDE_BOOKING_WINDOW)
D. max horizon in days from today (BEYOND_MAX_HORIZON)
E. weekend days (WEEKEND_DISABLED)

New bookings and reschedules go through exactly the same rules; the
``is_rescheduling`` flag is only logged. Deadlines for modifying an
existing appointment are separate gates (``validate_cancellation``,
``validate_reschedule``), and so is the status lifecycle
(``validate_status_transition``).

Rule violations are returned as InvalidResult values; only infrastructure
failures raise.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.constants import DAYS_OF_WEEK, REASON_BLOCKED, WEEKEND_DAYS
from ..core.date_utils import DateUtility, day_of_week, days_between, intervals_overlap, parse_time
from ..core.enums import ActorRole, AppointmentStatus, ValidationCode, available_transitions
from ..core.exceptions import (
    AvailabilityCalculationException,
    NotFoundException,
    RepositoryException,
    ValidationException,
)
from ..repositories.schedule_repository import ScheduleRepository
from ..schemas.availability import AppointmentRecord, AvailabilityBlockRecord, WorkingInterval
from ..schemas.booking_policy import BookingPolicy
from ..schemas.validation import InvalidResult, ValidationRequest, ValidationResult, ValidResult
from .base import BaseService
from .booking_policy_resolver import BookingPolicyResolver
from .slot_generator import validate_duration

logger = logging.getLogger(__name__)


def _invalid(code: ValidationCode, message: str) -> InvalidResult:
    return InvalidResult(code=code, message=message)


class BookingValidationService(BaseService):
    """Policy and role rules for booking, rescheduling and cancelling."""

    def __init__(
        self,
        policy_resolver: BookingPolicyResolver,
        date_utility: DateUtility,
        schedule_repository: Optional[ScheduleRepository] = None,
        db: Optional[Session] = None,
    ):
        super().__init__(db)
        self.policy_resolver = policy_resolver
        self.date_utility = date_utility
        self.schedule_repository = schedule_repository

    @staticmethod
    def applies_privilege(role: ActorRole, use_standard_rules: bool = False) -> bool:
        """Privileged roles skip patient restrictions unless standard rules are forced."""
        return role.is_privileged and not use_standard_rules

    # Pure rule evaluation

    def evaluate_day(
        self,
        policy: BookingPolicy,
        date: str,
        role: ActorRole,
        use_standard_rules: bool = False,
    ) -> Optional[InvalidResult]:
        """
        Day-level rules that disallow every time of ``date``.

        Returns None when at least some time of the day may be bookable.
        """
        today = self.date_utility.today()
        if date < today:
            return _invalid(ValidationCode.PAST_DATE, f"{date} is in the past")

        if (
            date == today
            and not policy.allow_same_day_booking
            and not self.applies_privilege(role, use_standard_rules)
        ):
            return _invalid(
                ValidationCode.ADVANCE_NOTICE_VIOLATION, "Same-day booking is not allowed"
            )

        if days_between(today, date) > policy.max_advance_booking_days:
            return _invalid(
                ValidationCode.BEYOND_MAX_HORIZON,
                f"Bookings are only accepted up to {policy.max_advance_booking_days} days ahead",
            )

        if day_of_week(date) in WEEKEND_DAYS and not policy.weekend_booking_enabled:
            return _invalid(ValidationCode.WEEKEND_DISABLED, "Weekend booking is disabled")

        return None

    def evaluate_rules(
        self,
        policy: BookingPolicy,
        date: str,
        time: str,
        role: ActorRole,
        use_standard_rules: bool = False,
    ) -> ValidationResult:
        """Apply rules A to E to a normalized date and a valid ``HH:MM`` time."""
        privileged = self.applies_privilege(role, use_standard_rules)
        today = self.date_utility.today()
        start_minutes = parse_time(time)

        # Rule A
        if date < today:
            return _invalid(ValidationCode.PAST_DATE, f"{date} is in the past")
        is_today = date == today
        if is_today and start_minutes <= self.date_utility.current_minutes():
            return _invalid(ValidationCode.PAST_TIME, f"{time} has already passed today")

        hours_until = self.date_utility.hours_until(date, time)

        # Rule B
        if not privileged:
            if is_today and not policy.allow_same_day_booking:
                return _invalid(
                    ValidationCode.ADVANCE_NOTICE_VIOLATION, "Same-day booking is not allowed"
                )
            if hours_until < policy.advance_booking_hours:
                return _invalid(
                    ValidationCode.ADVANCE_NOTICE_VIOLATION,
                    f"Bookings require at least {policy.advance_booking_hours:g} hours notice",
                )

        # Rule C
        if not policy.window_start_minutes <= start_minutes < policy.window_end_minutes:
            return _invalid(
                ValidationCode.OUTSIDE_BOOKING_WINDOW,
                f"Bookings are accepted between {policy.booking_window_start} "
                f"and {policy.booking_window_end}",
            )

        # Rule D
        if days_between(today, date) > policy.max_advance_booking_days:
            return _invalid(
                ValidationCode.BEYOND_MAX_HORIZON,
                f"Bookings are only accepted up to {policy.max_advance_booking_days} days ahead",
            )

        # Rule E
        if day_of_week(date) in WEEKEND_DAYS and not policy.weekend_booking_enabled:
            return _invalid(ValidationCode.WEEKEND_DISABLED, "Weekend booking is disabled")

        return ValidResult(hours_until_appointment=round(hours_until, 2))

    # Requests

    @BaseService.measure_operation("validate_booking_request")
    def validate_booking_request(self, request: ValidationRequest) -> ValidationResult:
        """
        Validate a new booking or a reschedule target.

        Input problems (bad date, displacement, bad time or duration) are
        returned as invalid results too, with their own codes.
        """
        normalization = self.date_utility.validate_and_normalize(
            request.date, component=self.__class__.__name__
        )
        if normalization.displacement is not None:
            return _invalid(ValidationCode.DATE_DISPLACEMENT, normalization.error or "")
        if not normalization.is_valid or normalization.normalized_date is None:
            return _invalid(ValidationCode.INVALID_DATE, normalization.error or "Invalid date")
        date = normalization.normalized_date

        try:
            start_minutes = parse_time(request.time)
            validate_duration(request.duration)
        except ValidationException as e:
            return _invalid(ValidationCode(e.code), e.message)

        policy = self.policy_resolver.get_booking_settings(request.organization_id)
        result = self.evaluate_rules(
            policy, date, request.time, request.role, request.use_standard_rules
        )

        if result.is_valid and request.doctor_id:
            result = self._check_schedule(request, date, start_minutes) or result

        self.logger.debug(
            f"Validated {date} {request.time} role={request.role.value} "
            f"rescheduling={request.is_rescheduling}: "
            f"{'valid' if result.is_valid else result.code.value}"
        )
        return result

    @BaseService.measure_operation("validate_cancellation")
    def validate_cancellation(
        self, organization_id: str, appointment_id: str, role: ActorRole
    ) -> ValidationResult:
        """
        Check that an appointment can still be cancelled by ``role``.

        Raises:
            NotFoundException: Unknown appointment
        """
        appointment = self._get_appointment(organization_id, appointment_id)
        if not appointment.is_modifiable:
            return _invalid(
                ValidationCode.APPOINTMENT_NOT_MODIFIABLE,
                f"Appointment in status {appointment.status} cannot be cancelled",
            )

        policy = self.policy_resolver.get_booking_settings(organization_id)
        hours_until = self.date_utility.hours_until(appointment.date, appointment.start_time)
        if not role.is_privileged and hours_until < policy.cancellation_deadline_hours:
            return _invalid(
                ValidationCode.CANCELLATION_DEADLINE_PASSED,
                f"Appointments can only be cancelled up to "
                f"{policy.cancellation_deadline_hours:g} hours in advance",
            )
        return ValidResult(hours_until_appointment=round(hours_until, 2))

    @BaseService.measure_operation("validate_reschedule")
    def validate_reschedule(self, request: ValidationRequest) -> ValidationResult:
        """
        Check the existing appointment can be moved, then validate the new time.

        The new time goes through ``validate_booking_request`` unchanged.

        Raises:
            ValidationException: No ``existing_appointment_id`` given
            NotFoundException: Unknown appointment
        """
        if not request.existing_appointment_id:
            raise ValidationException(
                "existing_appointment_id is required to reschedule",
                code="MISSING_APPOINTMENT_ID",
            )

        appointment = self._get_appointment(
            request.organization_id, request.existing_appointment_id
        )
        if not appointment.is_modifiable:
            return _invalid(
                ValidationCode.APPOINTMENT_NOT_MODIFIABLE,
                f"Appointment in status {appointment.status} cannot be rescheduled",
            )

        policy = self.policy_resolver.get_booking_settings(request.organization_id)
        hours_until = self.date_utility.hours_until(appointment.date, appointment.start_time)
        if not request.role.is_privileged and hours_until < policy.reschedule_deadline_hours:
            return _invalid(
                ValidationCode.RESCHEDULE_DEADLINE_PASSED,
                f"Appointments can only be rescheduled up to "
                f"{policy.reschedule_deadline_hours:g} hours in advance",
            )

        return self.validate_booking_request(request)

    @BaseService.measure_operation("validate_status_transition")
    def validate_status_transition(
        self,
        organization_id: str,
        appointment_id: str,
        new_status: AppointmentStatus,
        role: ActorRole,
    ) -> ValidationResult:
        """
        Check that ``role`` may move an appointment to ``new_status``.

        The lifecycle must allow the move from the current status, and the
        role must be permitted to set the target status.

        Raises:
            NotFoundException: Unknown appointment
        """
        appointment = self._get_appointment(organization_id, appointment_id)
        try:
            current = AppointmentStatus(appointment.status)
        except ValueError:
            return _invalid(
                ValidationCode.INVALID_TRANSITION,
                f"Appointment has unknown status {appointment.status}",
            )

        if new_status not in current.next_statuses:
            allowed = ", ".join(status.value for status in available_transitions(current, role))
            return _invalid(
                ValidationCode.INVALID_TRANSITION,
                f"Cannot move an appointment from {current.value} to {new_status.value}"
                f" (allowed: {allowed or 'none'})",
            )
        if new_status not in role.settable_statuses:
            return _invalid(
                ValidationCode.ROLE_NOT_PERMITTED,
                f"Role '{role.value}' does not have permission to set {new_status.value}",
            )

        self.logger.info(
            f"Status change {current.value} -> {new_status.value} allowed for "
            f"{role.value} on {appointment_id}"
        )
        return ValidResult()

    # Schedule checks

    def _check_schedule(
        self, request: ValidationRequest, date: str, start_minutes: int
    ) -> Optional[InvalidResult]:
        repository = self._require_repository()
        end_minutes = start_minutes + request.duration
        doctor_id = request.doctor_id
        assert doctor_id is not None

        try:
            intervals: List[WorkingInterval] = repository.get_working_intervals(
                request.organization_id, day_of_week(date), doctor_id
            )
            appointments: List[AppointmentRecord] = repository.get_blocking_appointments(
                request.organization_id,
                date,
                [doctor_id],
                exclude_appointment_id=request.existing_appointment_id,
            )
            day_start, day_end = self.date_utility.day_bounds(date)
            blocks: List[AvailabilityBlockRecord] = repository.get_blocks(
                request.organization_id, day_start, day_end, [doctor_id]
            )
        except RepositoryException as e:
            self.logger.error(f"Schedule lookup failed during validation: {str(e)}")
            raise AvailabilityCalculationException(details={"error": str(e)}) from e

        if not intervals:
            return _invalid(
                ValidationCode.NO_BUSINESS_HOURS,
                f"The doctor has no business hours on {DAYS_OF_WEEK[day_of_week(date)]}",
            )
        if not any(
            interval.start_minutes <= start_minutes and end_minutes <= interval.end_minutes
            for interval in intervals
        ):
            return _invalid(
                ValidationCode.OUTSIDE_BUSINESS_HOURS,
                "The requested time is outside the doctor's business hours",
            )

        for appointment in appointments:
            if intervals_overlap(
                start_minutes,
                end_minutes,
                parse_time(appointment.start_time),
                parse_time(appointment.end_time),
            ):
                return _invalid(
                    ValidationCode.TIME_CONFLICT,
                    f"The doctor already has an appointment from {appointment.start_time} "
                    f"to {appointment.end_time}",
                )

        for block in blocks:
            block_start = self.date_utility.minutes_into_day(day_start, block.start_datetime)
            block_end = self.date_utility.minutes_into_day(day_start, block.end_datetime)
            if intervals_overlap(start_minutes, end_minutes, block_start, block_end):
                return _invalid(ValidationCode.TIME_BLOCKED, block.reason or REASON_BLOCKED)
        return None

    def _get_appointment(self, organization_id: str, appointment_id: str) -> AppointmentRecord:
        repository = self._require_repository()
        try:
            appointment = repository.get_appointment(appointment_id, organization_id)
        except RepositoryException as e:
            self.logger.error(f"Appointment lookup failed: {str(e)}")
            raise AvailabilityCalculationException(details={"error": str(e)}) from e
        if appointment is None:
            raise NotFoundException(
                f"Appointment {appointment_id} not found", code="APPOINTMENT_NOT_FOUND"
            )
        return appointment

    def _require_repository(self) -> ScheduleRepository:
        if self.schedule_repository is None:
            raise RuntimeError("BookingValidationService was built without a schedule repository")
        return self.schedule_repository
