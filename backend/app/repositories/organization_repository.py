# backend/app/repositories/organization_repository.py
"""
Organization Repository for the scheduling platform

Reads and writes the raw booking policy document stored on the tenant row.
Interpretation (defaults, validation, caching) belongs to
BookingPolicyResolver.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.organization import Organization
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class OrganizationRepository(BaseRepository[Organization]):
    """Repository for tenant policy records."""

    def __init__(self, db: Session):
        super().__init__(db, Organization)

    def get_booking_settings(self, organization_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the stored booking settings document.

        Returns:
            The raw document, or None when the organization is missing,
            inactive or has no settings stored
        """
        try:
            organization = (
                self._build_query()
                .filter(Organization.id == organization_id, Organization.is_active.is_(True))
                .first()
            )
        except Exception as e:
            self.logger.error(f"Error getting booking settings for {organization_id}: {str(e)}")
            raise RepositoryException(f"Failed to get booking settings: {str(e)}")

        if organization is None:
            return None
        document = organization.booking_settings
        return dict(document) if isinstance(document, dict) else document

    def save_booking_settings(self, organization_id: str, document: Dict[str, Any]) -> bool:
        """
        Replace the stored booking settings document.

        Note: Does NOT commit - transaction management is handled by service layer.

        Returns:
            False when the organization does not exist
        """
        organization = self.update(organization_id, booking_settings=dict(document))
        return organization is not None
