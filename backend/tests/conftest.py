# backend/tests/conftest.py
"""
Pytest configuration shared by unit and integration tests.

Settings are pinned BEFORE any app import so tests never touch a real
database or Redis, whatever the developer's environment says.
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["CLINIC_TIMEZONE"] = "America/Bogota"
os.environ["POLICY_CACHE_BACKEND"] = "memory"
os.environ["CI"] = "true"

from types import SimpleNamespace
from typing import Callable

import pytest

from app.core.date_utils import DateUtility
from app.services.availability_engine import AvailabilityEngine
from app.services.booking_policy_resolver import BookingPolicyResolver
from app.services.booking_validation_service import BookingValidationService
from app.services.policy_cache import InMemoryPolicyCache
from app.services.slot_generator import SlotGenerator
from app.services.unified_slot_generator import UnifiedSlotGenerator
from tests._utils.scheduling import (
    CLINIC_TZ,
    TODAY,
    FakeOrganizationRepository,
    FakeScheduleRepository,
    clinic_clock,
)


@pytest.fixture
def make_date_utility() -> Callable[..., DateUtility]:
    def _make(date_string: str = TODAY, time_string: str = "10:00") -> DateUtility:
        return DateUtility(CLINIC_TZ, clinic_clock(date_string, time_string))

    return _make


@pytest.fixture
def date_utility(make_date_utility) -> DateUtility:
    """Clinic 'now' frozen at Monday 2025-01-13 10:00."""
    return make_date_utility()


@pytest.fixture
def schedule_repo() -> FakeScheduleRepository:
    return FakeScheduleRepository()


@pytest.fixture
def org_repo() -> FakeOrganizationRepository:
    return FakeOrganizationRepository()


@pytest.fixture
def build_stack(schedule_repo, org_repo, date_utility):
    """
    Wire the scheduling services the same way the API dependencies do.

    Call with a different DateUtility to move "now".
    """

    def _build(utility: DateUtility = date_utility) -> SimpleNamespace:
        resolver = BookingPolicyResolver(org_repo, InMemoryPolicyCache())
        validation = BookingValidationService(resolver, utility, schedule_repo)
        engine = AvailabilityEngine(schedule_repo, utility, resolver, validation, SlotGenerator())
        facade = UnifiedSlotGenerator(engine, utility)
        return SimpleNamespace(
            resolver=resolver,
            validation=validation,
            engine=engine,
            facade=facade,
            schedule_repo=schedule_repo,
            org_repo=org_repo,
            date_utility=utility,
        )

    return _build


@pytest.fixture
def stack(build_stack) -> SimpleNamespace:
    return build_stack()
