# backend/app/models/organization.py
"""
Organization (tenant) model.

Only the columns the scheduling engine reads are mapped here. The booking
policy is stored as a JSON document on the tenant row and is interpreted by
BookingPolicyResolver, never directly by callers.
"""

import logging

from sqlalchemy import JSON, Boolean, Column, DateTime, String
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class Organization(Base):
    """A clinic tenant and its booking policy document."""

    __tablename__ = "organizations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    booking_settings = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Organization {self.id} {self.name!r}>"
