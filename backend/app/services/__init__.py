"""Scheduling services."""

from .availability_engine import AvailabilityEngine
from .base import BaseService
from .booking_policy_resolver import BookingPolicyResolver
from .booking_validation_service import BookingValidationService
from .policy_cache import InMemoryPolicyCache, PolicyCache, RedisPolicyCache, create_policy_cache
from .slot_generator import SlotGenerator, deduplicate_slots
from .unified_slot_generator import UnifiedSlotGenerator

__all__ = [
    "AvailabilityEngine",
    "BaseService",
    "BookingPolicyResolver",
    "BookingValidationService",
    "InMemoryPolicyCache",
    "PolicyCache",
    "RedisPolicyCache",
    "SlotGenerator",
    "UnifiedSlotGenerator",
    "create_policy_cache",
    "deduplicate_slots",
]
