"""Repositories for the scheduling platform."""

from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .organization_repository import OrganizationRepository
from .schedule_repository import ScheduleRepository

__all__ = [
    "BaseRepository",
    "OrganizationRepository",
    "RepositoryFactory",
    "ScheduleRepository",
]
