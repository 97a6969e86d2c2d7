"""Application-wide constants for the scheduling platform."""

from __future__ import annotations

from typing import Any, Dict, Tuple

API_TITLE = "Clinic Scheduling API"
API_VERSION = "1.0.0"
API_DESCRIPTION = "Availability and slot-booking engine for multi-tenant medical appointments"

# Slot duration constraints (minutes)
MIN_SLOT_DURATION = 5
MAX_SLOT_DURATION = 480
DEFAULT_SLOT_DURATION = 30

# Booking policy bounds
MIN_ADVANCE_BOOKING_HOURS = 0
MAX_ADVANCE_BOOKING_HOURS = 72
MIN_MAX_ADVANCE_BOOKING_DAYS = 1
MAX_MAX_ADVANCE_BOOKING_DAYS = 365
MAX_DEADLINE_HOURS = 168

# Documented fallback policy, applied whenever a tenant record is missing or malformed
DEFAULT_BOOKING_POLICY: Dict[str, Any] = {
    "advance_booking_hours": 4,
    "max_advance_booking_days": 90,
    "allow_same_day_booking": True,
    "booking_window_start": "08:00",
    "booking_window_end": "18:00",
    "weekend_booking_enabled": False,
    "auto_confirmation": True,
    "cancellation_deadline_hours": 2,
    "reschedule_deadline_hours": 2,
}

# Day of week mapping, 0 = Sunday
DAYS_OF_WEEK = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
WEEKEND_DAYS: Tuple[int, ...] = (0, 6)

# Timezones the consistency check runs against
CONSISTENCY_CHECK_TIMEZONES: Tuple[str, ...] = (
    "UTC",
    "America/New_York",
    "Asia/Tokyo",
    "Europe/London",
)

# User-facing reasons attached to unavailable slots
REASON_OCCUPIED = "Ocupado"
REASON_BLOCKED = "No disponible"
