# backend/app/schemas/validation.py
"""
Booking validation schemas.

Business-rule outcomes are values: a request is answered with either
``ValidResult`` or ``InvalidResult`` carrying a stable ``ValidationCode``.
"""

from typing import Literal, Optional, Union

from pydantic import Field

from ..core.enums import ActorRole, AppointmentStatus, ValidationCode
from ._strict_base import FrozenRecord, StrictRequestModel


class ValidationRequest(StrictRequestModel):
    """
    A date/time a caller wants to book or move an appointment to.

    ``doctor_id`` enables the conflict and business-hours checks;
    ``existing_appointment_id`` is excluded from the conflict check when
    rescheduling.
    """

    organization_id: str = Field(..., min_length=1)
    date: str
    time: str
    role: ActorRole = ActorRole.PATIENT
    is_rescheduling: bool = False
    existing_appointment_id: Optional[str] = None
    doctor_id: Optional[str] = None
    duration: int = 30
    use_standard_rules: bool = False


class ValidResult(FrozenRecord):
    is_valid: Literal[True] = True
    hours_until_appointment: Optional[float] = None


class InvalidResult(FrozenRecord):
    is_valid: Literal[False] = False
    code: ValidationCode
    message: str


ValidationResult = Union[ValidResult, InvalidResult]


class CancellationRequest(StrictRequestModel):
    organization_id: str = Field(..., min_length=1)
    appointment_id: str = Field(..., min_length=1)
    role: ActorRole = ActorRole.PATIENT


class StatusTransitionRequest(StrictRequestModel):
    """Move ``appointment_id`` to ``new_status`` on behalf of ``role``."""

    organization_id: str = Field(..., min_length=1)
    appointment_id: str = Field(..., min_length=1)
    new_status: AppointmentStatus
    role: ActorRole = ActorRole.PATIENT
