# backend/app/schemas/booking_policy.py
"""
Booking policy schemas.

``BookingPolicy`` is the effective, fully validated tenant configuration.
Validation is strict: a stored document with a wrong type (``"4"`` instead
of ``4``), an out-of-range value or an inverted booking window is rejected
as a whole, and the resolver falls back to the complete default policy.
"""

from typing import Any, Dict, Optional

from pydantic import Field, StrictBool, StrictInt, field_validator, model_validator

from ..core.constants import (
    DEFAULT_BOOKING_POLICY,
    MAX_ADVANCE_BOOKING_HOURS,
    MAX_DEADLINE_HOURS,
    MAX_MAX_ADVANCE_BOOKING_DAYS,
    MIN_ADVANCE_BOOKING_HOURS,
    MIN_MAX_ADVANCE_BOOKING_DAYS,
)
from ..core.date_utils import is_valid_time, parse_time
from ._strict_base import FrozenRecord, StrictRequestModel

POLICY_FIELDS = tuple(DEFAULT_BOOKING_POLICY.keys())


class BookingPolicy(FrozenRecord):
    """Per-organization booking rules."""

    advance_booking_hours: float = Field(
        strict=True, ge=MIN_ADVANCE_BOOKING_HOURS, le=MAX_ADVANCE_BOOKING_HOURS
    )
    max_advance_booking_days: StrictInt = Field(
        ge=MIN_MAX_ADVANCE_BOOKING_DAYS, le=MAX_MAX_ADVANCE_BOOKING_DAYS
    )
    allow_same_day_booking: StrictBool
    booking_window_start: str
    booking_window_end: str
    weekend_booking_enabled: StrictBool
    auto_confirmation: StrictBool
    cancellation_deadline_hours: float = Field(strict=True, ge=0, le=MAX_DEADLINE_HOURS)
    reschedule_deadline_hours: float = Field(strict=True, ge=0, le=MAX_DEADLINE_HOURS)

    @field_validator("booking_window_start", "booking_window_end")
    @classmethod
    def validate_window_time(cls, v: str) -> str:
        if not is_valid_time(v):
            raise ValueError(f"Invalid booking window time: {v!r}. Use HH:MM")
        return v

    @model_validator(mode="after")
    def validate_window_order(self) -> "BookingPolicy":
        if parse_time(self.booking_window_start) >= parse_time(self.booking_window_end):
            raise ValueError("booking_window_start must be before booking_window_end")
        return self

    @classmethod
    def defaults(cls) -> "BookingPolicy":
        return cls(**DEFAULT_BOOKING_POLICY)

    @property
    def window_start_minutes(self) -> int:
        return parse_time(self.booking_window_start)

    @property
    def window_end_minutes(self) -> int:
        return parse_time(self.booking_window_end)


class BookingPolicyUpdate(StrictRequestModel):
    """Partial policy change submitted by an administrator."""

    advance_booking_hours: Optional[float] = None
    max_advance_booking_days: Optional[int] = None
    allow_same_day_booking: Optional[bool] = None
    booking_window_start: Optional[str] = None
    booking_window_end: Optional[str] = None
    weekend_booking_enabled: Optional[bool] = None
    auto_confirmation: Optional[bool] = None
    cancellation_deadline_hours: Optional[float] = None
    reschedule_deadline_hours: Optional[float] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
