# backend/app/models/schedule.py
"""
Doctor schedule models.

Classes:
    DoctorAvailability: Recurring weekly working interval (0 = Sunday)
    AvailabilityBlock: Ad-hoc range removing availability (break, vacation)

Block datetimes are stored as clinic-local naive datetimes.
"""

import logging

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
)
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class DoctorAvailability(Base):
    """One recurring weekly availability rule for a doctor."""

    __tablename__ = "doctor_availability"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(
        String(26), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    doctor_id = Column(String(26), nullable=False)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="check_day_of_week"),
        CheckConstraint("start_time < end_time", name="check_interval_order"),
        Index("idx_doctor_availability_org_day", "organization_id", "day_of_week"),
        Index("idx_doctor_availability_doctor_day", "doctor_id", "day_of_week"),
    )

    def __repr__(self) -> str:
        return (
            f"<DoctorAvailability {self.doctor_id} day={self.day_of_week} "
            f"{self.start_time}-{self.end_time}>"
        )


class AvailabilityBlock(Base):
    """Doctor break/vacation/leave over a bounded datetime range."""

    __tablename__ = "availability_blocks"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(
        String(26), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    doctor_id = Column(String(26), nullable=False)
    start_datetime = Column(DateTime, nullable=False)
    end_datetime = Column(DateTime, nullable=False)
    reason = Column(String(255), nullable=True)
    block_type = Column(String(20), nullable=False, default="other")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("start_datetime < end_datetime", name="check_block_order"),
        Index("idx_availability_blocks_doctor_range", "doctor_id", "start_datetime", "end_datetime"),
    )

    def __repr__(self) -> str:
        return f"<AvailabilityBlock {self.doctor_id} {self.start_datetime}-{self.end_datetime}>"
