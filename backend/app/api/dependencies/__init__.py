# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .database import get_db
from .repositories import get_organization_repository, get_schedule_repository
from .services import (
    get_availability_engine,
    get_booking_policy_resolver,
    get_booking_validation_service,
    get_date_utility,
    get_policy_cache,
    get_unified_slot_generator,
)

__all__ = [
    # Database
    "get_db",
    # Repositories
    "get_organization_repository",
    "get_schedule_repository",
    # Services
    "get_availability_engine",
    "get_booking_policy_resolver",
    "get_booking_validation_service",
    "get_date_utility",
    "get_policy_cache",
    "get_unified_slot_generator",
]
