# backend/app/repositories/schedule_repository.py
"""
Schedule Repository for the scheduling platform

Read-only adapter between the persistence collaborator and the availability
engine. It fetches working intervals, availability blocks and appointments
for an organization/doctor/date range and maps rows to immutable records.
No business logic lives here: no slot math, no policy, no "now".
"""

from datetime import datetime
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.date_utils import format_time_of_day, to_calendar_date
from ..core.enums import BLOCKING_STATUSES, BlockType
from ..core.exceptions import RepositoryException
from ..models.appointment import Appointment
from ..models.schedule import AvailabilityBlock, DoctorAvailability
from ..schemas.availability import AppointmentRecord, AvailabilityBlockRecord, WorkingInterval
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_BLOCKING_STATUS_VALUES = sorted(status.value for status in BLOCKING_STATUSES)


class ScheduleRepository(BaseRepository[DoctorAvailability]):
    """
    Repository for doctor schedule data access.

    Works with DoctorAvailability as primary model and reads blocks and
    appointments for the same doctor set.
    """

    def __init__(self, db: Session):
        """Initialize with DoctorAvailability model as primary."""
        super().__init__(db, DoctorAvailability)
        self.logger = logging.getLogger(__name__)

    # Working intervals

    def get_working_intervals(
        self,
        organization_id: str,
        day_of_week: int,
        doctor_id: Optional[str] = None,
    ) -> List[WorkingInterval]:
        """
        Get active recurring working intervals for a day of week.

        Args:
            organization_id: Tenant to read
            day_of_week: 0 = Sunday ... 6 = Saturday
            doctor_id: Optional doctor filter

        Returns:
            Intervals ordered by doctor and start time
        """
        try:
            query = self._build_query().filter(
                DoctorAvailability.organization_id == organization_id,
                DoctorAvailability.day_of_week == day_of_week,
                DoctorAvailability.is_active.is_(True),
            )
            if doctor_id:
                query = query.filter(DoctorAvailability.doctor_id == doctor_id)

            rows = query.order_by(DoctorAvailability.doctor_id, DoctorAvailability.start_time).all()
            return [
                WorkingInterval(
                    doctor_id=row.doctor_id,
                    day_of_week=row.day_of_week,
                    start_time=format_time_of_day(row.start_time),
                    end_time=format_time_of_day(row.end_time),
                    is_active=row.is_active,
                )
                for row in rows
            ]
        except Exception as e:
            self.logger.error(f"Error getting working intervals: {str(e)}")
            raise RepositoryException(f"Failed to get working intervals: {str(e)}")

    # Blocks

    def get_blocks(
        self,
        organization_id: str,
        range_start: datetime,
        range_end: datetime,
        doctor_ids: Optional[Sequence[str]] = None,
    ) -> List[AvailabilityBlockRecord]:
        """Get blocks overlapping ``[range_start, range_end)`` (clinic-local naive datetimes)."""
        try:
            query = self.db.query(AvailabilityBlock).filter(
                AvailabilityBlock.organization_id == organization_id,
                AvailabilityBlock.start_datetime < range_end,
                AvailabilityBlock.end_datetime > range_start,
            )
            if doctor_ids is not None:
                query = query.filter(AvailabilityBlock.doctor_id.in_(list(doctor_ids)))

            rows = query.order_by(AvailabilityBlock.start_datetime).all()
            return [
                AvailabilityBlockRecord(
                    doctor_id=row.doctor_id,
                    start_datetime=row.start_datetime,
                    end_datetime=row.end_datetime,
                    reason=row.reason,
                    block_type=BlockType(row.block_type or BlockType.OTHER.value),
                )
                for row in rows
            ]
        except Exception as e:
            self.logger.error(f"Error getting availability blocks: {str(e)}")
            raise RepositoryException(f"Failed to get availability blocks: {str(e)}")

    # Appointments

    def get_blocking_appointments(
        self,
        organization_id: str,
        target_date: str,
        doctor_ids: Optional[Sequence[str]] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[AppointmentRecord]:
        """
        Get appointments that occupy time on a date.

        Only statuses in the blocking set are returned; cancelled and
        completed appointments never block.
        """
        try:
            query = self.db.query(Appointment).filter(
                Appointment.organization_id == organization_id,
                Appointment.appointment_date == to_calendar_date(target_date),
                Appointment.status.in_(_BLOCKING_STATUS_VALUES),
            )
            if doctor_ids is not None:
                query = query.filter(Appointment.doctor_id.in_(list(doctor_ids)))
            if exclude_appointment_id:
                query = query.filter(Appointment.id != exclude_appointment_id)

            rows = query.order_by(Appointment.doctor_id, Appointment.start_time).all()
            return [self._to_appointment_record(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Error getting blocking appointments: {str(e)}")
            raise RepositoryException(f"Failed to get appointments: {str(e)}")

    def get_appointment(
        self, appointment_id: str, organization_id: Optional[str] = None
    ) -> Optional[AppointmentRecord]:
        """Get a single appointment, scoped to an organization when given."""
        try:
            query = self.db.query(Appointment).filter(Appointment.id == appointment_id)
            if organization_id:
                query = query.filter(Appointment.organization_id == organization_id)
            row = query.first()
            return self._to_appointment_record(row) if row else None
        except Exception as e:
            self.logger.error(f"Error getting appointment {appointment_id}: {str(e)}")
            raise RepositoryException(f"Failed to get appointment: {str(e)}")

    @staticmethod
    def _to_appointment_record(row: Appointment) -> AppointmentRecord:
        return AppointmentRecord(
            id=row.id,
            doctor_id=row.doctor_id,
            organization_id=row.organization_id,
            patient_id=row.patient_id,
            date=row.appointment_date.isoformat(),
            start_time=format_time_of_day(row.start_time),
            end_time=format_time_of_day(row.end_time),
            status=row.status,
        )
