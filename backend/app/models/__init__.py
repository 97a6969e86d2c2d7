"""
Database models for the scheduling platform.

Only the tables read by the availability engine are mapped:
- Organization: tenant row carrying the booking policy document
- DoctorAvailability / AvailabilityBlock: doctor schedules
- Appointment: existing bookings that occupy time ranges
"""

from .appointment import Appointment
from .organization import Organization
from .schedule import AvailabilityBlock, DoctorAvailability

__all__ = [
    "Appointment",
    "AvailabilityBlock",
    "DoctorAvailability",
    "Organization",
]
