"""
V1 availability endpoints.

Thin HTTP surface over the unified slot generator, the booking validation
service and the policy resolver. The caller's role arrives as a field; no
authentication happens here.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.services import (
    get_booking_policy_resolver,
    get_booking_validation_service,
    get_unified_slot_generator,
)
from ...core.config import settings
from ...core.enums import ActorRole, BookingChannel
from ...core.exceptions import DomainException
from ...schemas.availability import (
    DayAvailabilitySummary,
    Slot,
    SlotGenerationParams,
    SlotGenerationResult,
)
from ...schemas.booking_policy import BookingPolicy, BookingPolicyUpdate
from ...schemas.validation import (
    CancellationRequest,
    StatusTransitionRequest,
    ValidationRequest,
    ValidationResult,
)
from ...services.booking_policy_resolver import BookingPolicyResolver
from ...services.booking_validation_service import BookingValidationService
from ...services.unified_slot_generator import UnifiedSlotGenerator

logger = logging.getLogger(__name__)

# V1 router - mounted at /api/v1/availability
router = APIRouter(tags=["availability"])


def get_slot_params(
    organization_id: str = Query(..., min_length=1),
    date: str = Query(..., description="YYYY-MM-DD"),
    doctor_id: Optional[str] = Query(None),
    duration: int = Query(settings.default_slot_duration_minutes),
    user_role: ActorRole = Query(ActorRole.PATIENT),
    use_configurable_rules: bool = Query(True),
    use_standard_rules: bool = Query(False),
    channel: BookingChannel = Query(BookingChannel.MANUAL),
) -> SlotGenerationParams:
    return SlotGenerationParams(
        organization_id=organization_id,
        date=date,
        doctor_id=doctor_id,
        duration=duration,
        user_role=user_role,
        use_configurable_rules=use_configurable_rules,
        use_standard_rules=use_standard_rules,
        channel=channel,
    )


def get_week_params(
    organization_id: str = Query(..., min_length=1),
    week_start: str = Query(..., description="YYYY-MM-DD"),
    doctor_id: Optional[str] = Query(None),
    duration: int = Query(settings.default_slot_duration_minutes),
    user_role: ActorRole = Query(ActorRole.PATIENT),
    use_configurable_rules: bool = Query(True),
    use_standard_rules: bool = Query(False),
    channel: BookingChannel = Query(BookingChannel.MANUAL),
) -> SlotGenerationParams:
    """Same filters as ``get_slot_params``; the week start takes the place of the date."""
    return get_slot_params(
        organization_id=organization_id,
        date=week_start,
        doctor_id=doctor_id,
        duration=duration,
        user_role=user_role,
        use_configurable_rules=use_configurable_rules,
        use_standard_rules=use_standard_rules,
        channel=channel,
    )


@router.get("/slots", response_model=SlotGenerationResult)
def get_slots(
    params: SlotGenerationParams = Depends(get_slot_params),
    slot_generator: UnifiedSlotGenerator = Depends(get_unified_slot_generator),
) -> SlotGenerationResult:
    """Slots for one date. Failures are reported in the ``error`` field."""
    return slot_generator.generate_slots(params)


@router.get("/week", response_model=List[DayAvailabilitySummary])
def get_week(
    params: SlotGenerationParams = Depends(get_week_params),
    slot_generator: UnifiedSlotGenerator = Depends(get_unified_slot_generator),
) -> List[DayAvailabilitySummary]:
    """Slot counts for seven days starting at ``week_start``."""
    try:
        return slot_generator.generate_week_availability(params, params.date)
    except DomainException as exc:
        raise exc.to_http_exception() from exc


@router.get("/next", response_model=Optional[Slot])
def get_next_available(
    days_ahead: int = Query(14, ge=1, le=90),
    params: SlotGenerationParams = Depends(get_slot_params),
    slot_generator: UnifiedSlotGenerator = Depends(get_unified_slot_generator),
) -> Optional[Slot]:
    """First available slot from ``date`` on, or null."""
    try:
        return slot_generator.find_next_available_slot(params, days_ahead=days_ahead)
    except DomainException as exc:
        raise exc.to_http_exception() from exc


@router.post("/validate", response_model=ValidationResult)
def validate_booking(
    payload: ValidationRequest,
    validation_service: BookingValidationService = Depends(get_booking_validation_service),
) -> ValidationResult:
    """Validate a date/time for a new booking or a reschedule target."""
    try:
        return validation_service.validate_booking_request(payload)
    except DomainException as exc:
        raise exc.to_http_exception() from exc


@router.post("/validate/reschedule", response_model=ValidationResult)
def validate_reschedule(
    payload: ValidationRequest,
    validation_service: BookingValidationService = Depends(get_booking_validation_service),
) -> ValidationResult:
    """Validate moving ``existing_appointment_id`` to a new date/time."""
    try:
        return validation_service.validate_reschedule(payload)
    except DomainException as exc:
        raise exc.to_http_exception() from exc


@router.post("/validate/cancellation", response_model=ValidationResult)
def validate_cancellation(
    payload: CancellationRequest,
    validation_service: BookingValidationService = Depends(get_booking_validation_service),
) -> ValidationResult:
    try:
        return validation_service.validate_cancellation(
            payload.organization_id, payload.appointment_id, payload.role
        )
    except DomainException as exc:
        raise exc.to_http_exception() from exc


@router.post("/validate/status", response_model=ValidationResult)
def validate_status_transition(
    payload: StatusTransitionRequest,
    validation_service: BookingValidationService = Depends(get_booking_validation_service),
) -> ValidationResult:
    """Check a status change against the appointment lifecycle and the caller's role."""
    try:
        return validation_service.validate_status_transition(
            payload.organization_id, payload.appointment_id, payload.new_status, payload.role
        )
    except DomainException as exc:
        raise exc.to_http_exception() from exc


@router.get("/policy/{organization_id}", response_model=BookingPolicy)
def get_policy(
    organization_id: str,
    policy_resolver: BookingPolicyResolver = Depends(get_booking_policy_resolver),
) -> BookingPolicy:
    """Effective booking policy (defaults when the tenant record is unusable)."""
    return policy_resolver.get_booking_settings(organization_id)


@router.patch("/policy/{organization_id}", response_model=BookingPolicy)
def update_policy(
    organization_id: str,
    payload: BookingPolicyUpdate,
    policy_resolver: BookingPolicyResolver = Depends(get_booking_policy_resolver),
) -> BookingPolicy:
    try:
        return policy_resolver.update_booking_settings(organization_id, payload)
    except DomainException as exc:
        raise exc.to_http_exception() from exc


@router.delete("/policy-cache/{organization_id}", response_model=Dict[str, int])
def invalidate_policy_cache(
    organization_id: str,
    policy_resolver: BookingPolicyResolver = Depends(get_booking_policy_resolver),
) -> Dict[str, int]:
    """Drop the cached policy of one organization."""
    return {"invalidated": policy_resolver.clear_cache(organization_id)}


@router.delete("/policy-cache", response_model=Dict[str, int])
def clear_policy_cache(
    policy_resolver: BookingPolicyResolver = Depends(get_booking_policy_resolver),
) -> Dict[str, int]:
    return {"invalidated": policy_resolver.clear_cache()}
