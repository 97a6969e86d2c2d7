"""Shared helpers for backend test suites."""

from .scheduling import (
    CLINIC_TZ,
    DOCTOR,
    ORG,
    TODAY,
    FakeOrganizationRepository,
    FakeScheduleRepository,
    appointment,
    block,
    clinic_clock,
    interval,
    policy_document,
)

__all__ = [
    "CLINIC_TZ",
    "DOCTOR",
    "ORG",
    "TODAY",
    "FakeOrganizationRepository",
    "FakeScheduleRepository",
    "appointment",
    "block",
    "clinic_clock",
    "interval",
    "policy_document",
]
