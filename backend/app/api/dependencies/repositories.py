# backend/app/api/dependencies/repositories.py
"""
Repository dependencies.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...repositories.factory import RepositoryFactory
from ...repositories.organization_repository import OrganizationRepository
from ...repositories.schedule_repository import ScheduleRepository
from .database import get_db


def get_schedule_repository(db: Session = Depends(get_db)) -> ScheduleRepository:
    return RepositoryFactory.create_schedule_repository(db)


def get_organization_repository(db: Session = Depends(get_db)) -> OrganizationRepository:
    return RepositoryFactory.create_organization_repository(db)
