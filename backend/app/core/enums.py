"""
Core enums for the scheduling platform.

This module contains enumeration types used throughout the availability
and booking engine for type safety and consistency.
"""

from enum import Enum
from typing import Dict, FrozenSet, List


class ActorRole(str, Enum):
    """
    Role of the actor asking for slots or submitting a booking.

    The role is resolved upstream by the authentication layer; the engine
    only branches on it.
    """

    PATIENT = "patient"
    DOCTOR = "doctor"
    STAFF = "staff"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"

    @property
    def is_privileged(self) -> bool:
        return self in PRIVILEGED_ROLES

    @property
    def settable_statuses(self) -> FrozenSet["AppointmentStatus"]:
        """Statuses this role may move an appointment into."""
        return ROLE_STATUS_PERMISSIONS[self]


PRIVILEGED_ROLES: FrozenSet[ActorRole] = frozenset(
    {ActorRole.DOCTOR, ActorRole.STAFF, ActorRole.ADMIN, ActorRole.SUPERADMIN}
)


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    PENDING = "pending"
    PENDIENTE_PAGO = "pendiente_pago"  # Awaiting payment, slot is held
    CONFIRMED = "confirmed"
    SCHEDULED = "scheduled"
    REAGENDADA = "reagendada"  # Rescheduled into this slot
    EN_CURSO = "en_curso"  # In progress
    COMPLETED = "completed"
    NO_SHOW = "no_show"
    CANCELLED = "cancelled"
    CANCELADA_PACIENTE = "cancelada_paciente"
    CANCELADA_CLINICA = "cancelada_clinica"

    @property
    def is_blocking(self) -> bool:
        return self in BLOCKING_STATUSES

    @property
    def is_modifiable(self) -> bool:
        return self in MODIFIABLE_STATUSES

    @property
    def next_statuses(self) -> FrozenSet["AppointmentStatus"]:
        return STATUS_TRANSITIONS[self]

    @property
    def is_final(self) -> bool:
        return not STATUS_TRANSITIONS[self]


# Statuses that occupy their time range on the doctor's calendar.
BLOCKING_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.PENDIENTE_PAGO,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.REAGENDADA,
        AppointmentStatus.EN_CURSO,
    }
)

# Statuses that can still be cancelled or moved.
MODIFIABLE_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.PENDIENTE_PAGO,
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.REAGENDADA,
    }
)

_CONFIRMED_NEXT: FrozenSet[AppointmentStatus] = frozenset(
    {
        AppointmentStatus.EN_CURSO,
        AppointmentStatus.REAGENDADA,
        AppointmentStatus.CANCELADA_PACIENTE,
        AppointmentStatus.CANCELADA_CLINICA,
        AppointmentStatus.NO_SHOW,
    }
)

# Lifecycle: which statuses each status may move to. Final statuses map to nothing.
STATUS_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {
            AppointmentStatus.PENDIENTE_PAGO,
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CANCELADA_CLINICA,
        }
    ),
    AppointmentStatus.PENDIENTE_PAGO: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.CANCELADA_PACIENTE,
        }
    ),
    AppointmentStatus.CONFIRMED: _CONFIRMED_NEXT,
    AppointmentStatus.SCHEDULED: _CONFIRMED_NEXT,
    AppointmentStatus.REAGENDADA: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CANCELADA_PACIENTE,
            AppointmentStatus.CANCELADA_CLINICA,
        }
    ),
    AppointmentStatus.EN_CURSO: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.CANCELADA_PACIENTE: frozenset(),
    AppointmentStatus.CANCELADA_CLINICA: frozenset(),
}

# Target statuses each role may set, whatever the current status.
ROLE_STATUS_PERMISSIONS: Dict[ActorRole, FrozenSet[AppointmentStatus]] = {
    ActorRole.PATIENT: frozenset(
        {AppointmentStatus.CANCELADA_PACIENTE, AppointmentStatus.REAGENDADA}
    ),
    ActorRole.DOCTOR: frozenset(
        {AppointmentStatus.EN_CURSO, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
    ),
    ActorRole.STAFF: frozenset(AppointmentStatus),
    ActorRole.ADMIN: frozenset(AppointmentStatus),
    ActorRole.SUPERADMIN: frozenset(AppointmentStatus),
}


def available_transitions(current: AppointmentStatus, role: ActorRole) -> List[AppointmentStatus]:
    """Statuses ``role`` may move an appointment in ``current`` to, in declaration order."""
    allowed = current.next_statuses & role.settable_statuses
    return [status for status in AppointmentStatus if status in allowed]


class BlockType(str, Enum):
    """Kind of ad-hoc exception removing availability."""

    BREAK = "break"
    VACATION = "vacation"
    SICK_LEAVE = "sick_leave"
    MEETING = "meeting"
    OTHER = "other"


class BookingChannel(str, Enum):
    """
    Flow that asked for slots.

    Recorded for logs and metrics only. Every channel goes through the same
    generator and must receive the same slots.
    """

    MANUAL = "manual"
    AI = "ai"
    RESCHEDULE = "reschedule"


class ValidationCode(str, Enum):
    """Stable codes returned with invalid booking validations."""

    INVALID_DATE = "INVALID_DATE"
    DATE_DISPLACEMENT = "DATE_DISPLACEMENT"
    INVALID_TIME = "INVALID_TIME"
    INVALID_DURATION = "INVALID_DURATION"
    PAST_DATE = "PAST_DATE"
    PAST_TIME = "PAST_TIME"
    ADVANCE_NOTICE_VIOLATION = "ADVANCE_NOTICE_VIOLATION"
    OUTSIDE_BOOKING_WINDOW = "OUTSIDE_BOOKING_WINDOW"
    BEYOND_MAX_HORIZON = "BEYOND_MAX_HORIZON"
    WEEKEND_DISABLED = "WEEKEND_DISABLED"
    TIME_CONFLICT = "TIME_CONFLICT"
    TIME_BLOCKED = "TIME_BLOCKED"
    NO_BUSINESS_HOURS = "NO_BUSINESS_HOURS"
    OUTSIDE_BUSINESS_HOURS = "OUTSIDE_BUSINESS_HOURS"
    APPOINTMENT_NOT_MODIFIABLE = "APPOINTMENT_NOT_MODIFIABLE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    ROLE_NOT_PERMITTED = "ROLE_NOT_PERMITTED"
    CANCELLATION_DEADLINE_PASSED = "CANCELLATION_DEADLINE_PASSED"
    RESCHEDULE_DEADLINE_PASSED = "RESCHEDULE_DEADLINE_PASSED"
