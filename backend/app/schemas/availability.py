# backend/app/schemas/availability.py
"""
Availability schemas for the scheduling engine.

Records read from the persistence collaborator (working intervals, blocks,
appointments) and the computed values handed back to callers (slots and
slot generation results). Dates are ``YYYY-MM-DD`` strings and times are
``HH:MM`` strings everywhere; ``date`` is deliberately left as a plain
string on the request so that normalization (and displacement detection)
happens in one place, ``DateUtility``.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from ..core.date_utils import is_valid_time, parse_time
from ..core.enums import ActorRole, AppointmentStatus, BlockType, BookingChannel
from ._strict_base import FrozenRecord, StrictModel, StrictRequestModel


def _check_time(value: str) -> str:
    if not is_valid_time(value):
        raise ValueError(f"Invalid time format: {value!r}. Use HH:MM")
    return value


class WorkingInterval(FrozenRecord):
    """One recurring weekly availability rule (0 = Sunday)."""

    doctor_id: str
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, v: str) -> str:
        return _check_time(v)

    @model_validator(mode="after")
    def validate_order(self) -> "WorkingInterval":
        if parse_time(self.end_time) <= parse_time(self.start_time):
            raise ValueError("End time must be after start time")
        return self

    @property
    def start_minutes(self) -> int:
        return parse_time(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time(self.end_time)


class AvailabilityBlockRecord(FrozenRecord):
    """Ad-hoc unavailable range, in clinic-local naive datetimes."""

    doctor_id: str
    start_datetime: datetime
    end_datetime: datetime
    reason: Optional[str] = None
    block_type: BlockType = BlockType.OTHER

    @model_validator(mode="after")
    def validate_order(self) -> "AvailabilityBlockRecord":
        if self.end_datetime <= self.start_datetime:
            raise ValueError("Block end must be after block start")
        return self


class AppointmentRecord(FrozenRecord):
    """Existing appointment as seen by the engine."""

    id: str
    doctor_id: str
    organization_id: str
    patient_id: Optional[str] = None
    date: str
    start_time: str
    end_time: str
    status: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, v: str) -> str:
        return _check_time(v)

    @property
    def is_blocking(self) -> bool:
        try:
            return AppointmentStatus(self.status).is_blocking
        except ValueError:
            return False

    @property
    def is_modifiable(self) -> bool:
        try:
            return AppointmentStatus(self.status).is_modifiable
        except ValueError:
            return False


class Slot(FrozenRecord):
    """A candidate time interval for one doctor on one date."""

    id: str
    doctor_id: str
    date: str
    start_time: str
    end_time: str
    duration_minutes: int
    available: bool = True
    reason: Optional[str] = None


class SlotGenerationParams(StrictRequestModel):
    """
    Input of the unified slot generator.

    ``channel`` identifies the calling flow for logs and metrics and never
    changes the result.
    """

    organization_id: str = Field(..., min_length=1)
    date: str
    doctor_id: Optional[str] = None
    duration: int = 30
    user_role: ActorRole = ActorRole.PATIENT
    use_configurable_rules: bool = True
    use_standard_rules: bool = False
    channel: BookingChannel = BookingChannel.MANUAL


class SlotGenerationError(StrictModel):
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class SlotGenerationResult(StrictModel):
    """Slots or an explicit error; an empty list without error means no availability."""

    slots: List[Slot] = Field(default_factory=list)
    error: Optional[SlotGenerationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def available_count(self) -> int:
        return sum(1 for slot in self.slots if slot.available)


class DayAvailabilitySummary(StrictModel):
    """Per-date entry of the week view."""

    date: str
    total_slots: int = 0
    available_slots: int = 0
    error: Optional[SlotGenerationError] = None
