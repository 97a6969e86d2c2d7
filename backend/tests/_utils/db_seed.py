# backend/tests/_utils/db_seed.py
"""
Row builders for integration tests.

Each helper adds one row and flushes; committing is left to the test.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.date_utils import to_time_of_day
from app.core.enums import AppointmentStatus, BlockType
from app.models import Appointment, AvailabilityBlock, DoctorAvailability, Organization

from .scheduling import DOCTOR, ORG


def seed_organization(
    db: Session,
    organization_id: str = ORG,
    booking_settings: Optional[Any] = None,
    is_active: bool = True,
) -> Organization:
    organization = Organization(
        id=organization_id,
        name=f"Clinic {organization_id}",
        is_active=is_active,
        booking_settings=booking_settings,
    )
    db.add(organization)
    db.flush()
    return organization


def seed_interval(
    db: Session,
    day_of_week: int,
    start: str,
    end: str,
    doctor_id: str = DOCTOR,
    organization_id: str = ORG,
    is_active: bool = True,
) -> DoctorAvailability:
    row = DoctorAvailability(
        organization_id=organization_id,
        doctor_id=doctor_id,
        day_of_week=day_of_week,
        start_time=to_time_of_day(start),
        end_time=to_time_of_day(end),
        is_active=is_active,
    )
    db.add(row)
    db.flush()
    return row


def seed_appointment(
    db: Session,
    on: date,
    start: str,
    end: str,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    doctor_id: str = DOCTOR,
    organization_id: str = ORG,
    appointment_id: Optional[str] = None,
) -> Appointment:
    fields: Dict[str, Any] = {}
    if appointment_id:
        fields["id"] = appointment_id
    row = Appointment(
        organization_id=organization_id,
        doctor_id=doctor_id,
        patient_id="patient-1",
        appointment_date=on,
        start_time=to_time_of_day(start),
        end_time=to_time_of_day(end),
        status=status.value,
        **fields,
    )
    db.add(row)
    db.flush()
    return row


def seed_block(
    db: Session,
    start: datetime,
    end: datetime,
    reason: Optional[str] = None,
    doctor_id: str = DOCTOR,
    organization_id: str = ORG,
    block_type: BlockType = BlockType.OTHER,
) -> AvailabilityBlock:
    row = AvailabilityBlock(
        organization_id=organization_id,
        doctor_id=doctor_id,
        start_datetime=start,
        end_datetime=end,
        reason=reason,
        block_type=block_type.value,
    )
    db.add(row)
    db.flush()
    return row
