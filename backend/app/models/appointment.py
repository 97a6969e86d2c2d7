# backend/app/models/appointment.py
"""
Appointment model.

Appointments are owned by the booking write path; the scheduling engine
only reads them to mark occupied ranges. Final admission (no double
booking) is enforced by the write path, not by the engine.
"""

import logging

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Time
from sqlalchemy.sql import func
import ulid

from ..core.enums import AppointmentStatus
from ..database import Base

logger = logging.getLogger(__name__)


class Appointment(Base):
    """A patient appointment with a doctor on a clinic-local date."""

    __tablename__ = "appointments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(
        String(26), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    doctor_id = Column(String(26), nullable=False)
    patient_id = Column(String(26), nullable=False)
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String(30), nullable=False, default=AppointmentStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_appointments_org_date", "organization_id", "appointment_date"),
        Index("idx_appointments_doctor_date", "doctor_id", "appointment_date"),
    )

    def is_blocking(self) -> bool:
        try:
            return AppointmentStatus(self.status).is_blocking
        except ValueError:
            return False

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id} {self.doctor_id} {self.appointment_date} "
            f"{self.start_time}-{self.end_time} {self.status}>"
        )
