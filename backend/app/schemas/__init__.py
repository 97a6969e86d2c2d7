"""Pydantic schemas for the scheduling engine."""

from .availability import (
    AppointmentRecord,
    AvailabilityBlockRecord,
    DayAvailabilitySummary,
    Slot,
    SlotGenerationError,
    SlotGenerationParams,
    SlotGenerationResult,
    WorkingInterval,
)
from .booking_policy import BookingPolicy, BookingPolicyUpdate
from .validation import (
    CancellationRequest,
    InvalidResult,
    ValidationRequest,
    ValidationResult,
    ValidResult,
)

__all__ = [
    "AppointmentRecord",
    "AvailabilityBlockRecord",
    "BookingPolicy",
    "BookingPolicyUpdate",
    "CancellationRequest",
    "DayAvailabilitySummary",
    "InvalidResult",
    "Slot",
    "SlotGenerationError",
    "SlotGenerationParams",
    "SlotGenerationResult",
    "ValidResult",
    "ValidationRequest",
    "ValidationResult",
    "WorkingInterval",
]
