# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected. The policy cache is
the only object shared across requests; every service is request-scoped.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...core.date_utils import DateUtility
from ...repositories.organization_repository import OrganizationRepository
from ...repositories.schedule_repository import ScheduleRepository
from ...services.availability_engine import AvailabilityEngine
from ...services.booking_policy_resolver import BookingPolicyResolver
from ...services.booking_validation_service import BookingValidationService
from ...services.policy_cache import PolicyCache, create_policy_cache
from ...services.slot_generator import SlotGenerator
from ...services.unified_slot_generator import UnifiedSlotGenerator
from .database import get_db
from .repositories import get_organization_repository, get_schedule_repository

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_policy_cache_singleton() -> PolicyCache:
    """Get the process-wide booking policy cache."""
    return create_policy_cache(settings)


def get_policy_cache() -> PolicyCache:
    """Get policy cache instance for dependency injection."""
    return get_policy_cache_singleton()


def get_date_utility() -> DateUtility:
    """Date utility anchored to the clinic timezone and the system clock."""
    return DateUtility(settings.clinic_timezone)


def get_booking_policy_resolver(
    db: Session = Depends(get_db),
    organization_repository: OrganizationRepository = Depends(get_organization_repository),
    cache: PolicyCache = Depends(get_policy_cache),
) -> BookingPolicyResolver:
    """Get BookingPolicyResolver with the shared cache."""
    return BookingPolicyResolver(organization_repository, cache, db)


def get_booking_validation_service(
    policy_resolver: BookingPolicyResolver = Depends(get_booking_policy_resolver),
    schedule_repository: ScheduleRepository = Depends(get_schedule_repository),
    date_utility: DateUtility = Depends(get_date_utility),
) -> BookingValidationService:
    """Get BookingValidationService instance with proper dependencies."""
    return BookingValidationService(policy_resolver, date_utility, schedule_repository)


def get_availability_engine(
    schedule_repository: ScheduleRepository = Depends(get_schedule_repository),
    policy_resolver: BookingPolicyResolver = Depends(get_booking_policy_resolver),
    validation_service: BookingValidationService = Depends(get_booking_validation_service),
    date_utility: DateUtility = Depends(get_date_utility),
) -> AvailabilityEngine:
    """Get AvailabilityEngine instance with proper dependencies."""
    return AvailabilityEngine(
        schedule_repository,
        date_utility,
        policy_resolver,
        validation_service,
        SlotGenerator(),
    )


def get_unified_slot_generator(
    availability_engine: AvailabilityEngine = Depends(get_availability_engine),
    date_utility: DateUtility = Depends(get_date_utility),
) -> UnifiedSlotGenerator:
    """
    Get the unified slot generator.

    Every route that returns slots must depend on this, never on the engine.
    """
    return UnifiedSlotGenerator(availability_engine, date_utility)
