# backend/app/repositories/factory.py
"""
Repository Factory for the scheduling platform

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .organization_repository import OrganizationRepository
    from .schedule_repository import ScheduleRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations if needed.
    """

    @staticmethod
    def create_schedule_repository(db: Session) -> "ScheduleRepository":
        """Create repository for schedule, block and appointment reads."""
        from .schedule_repository import ScheduleRepository

        return ScheduleRepository(db)

    @staticmethod
    def create_organization_repository(db: Session) -> "OrganizationRepository":
        """Create repository for tenant booking settings."""
        from .organization_repository import OrganizationRepository

        return OrganizationRepository(db)
