# backend/app/services/booking_policy_resolver.py
"""
Booking Policy Resolver for the scheduling platform

Resolves the effective booking policy of an organization. The tenant
document is validated as a whole: if any rule field is missing, has the
wrong type or is out of range, or if the record cannot be read at all, the
complete default policy is returned. A tenant policy is never applied
partially, and configuration problems never block booking.

Successful resolutions are cached in the injected PolicyCache until an
explicit invalidation. Fallbacks are not cached so a repaired record is
picked up on the next request.
"""

import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException, ValidationException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.organization_repository import OrganizationRepository
from ..schemas.booking_policy import POLICY_FIELDS, BookingPolicy, BookingPolicyUpdate
from .base import BaseService
from .policy_cache import InMemoryPolicyCache, PolicyCache

logger = logging.getLogger(__name__)


class BookingPolicyResolver(BaseService):
    """Tenant policy lookup with defaults, strict validation and caching."""

    def __init__(
        self,
        organization_repository: OrganizationRepository,
        cache: Optional[PolicyCache] = None,
        db: Optional[Session] = None,
    ):
        super().__init__(db)
        self.organization_repository = organization_repository
        self.cache: PolicyCache = cache if cache is not None else InMemoryPolicyCache()

    @BaseService.measure_operation("get_booking_settings")
    def get_booking_settings(self, organization_id: str) -> BookingPolicy:
        """
        Get the effective policy for an organization.

        Never raises for configuration problems; see module docstring.
        """
        cached = self.cache.get(organization_id)
        prometheus_metrics.record_policy_cache_lookup(hit=cached is not None)
        if cached is not None:
            self.logger.debug(f"Booking policy cache hit for {organization_id}")
            return cached

        try:
            document = self.organization_repository.get_booking_settings(organization_id)
        except Exception as e:
            return self._fallback(organization_id, "fetch_error", str(e))

        if document is None:
            return self._fallback(organization_id, "not_found", "no booking settings stored")

        policy = self._parse(document)
        if policy is None:
            return self._fallback(organization_id, "malformed", "booking settings failed validation")

        self.cache.set(organization_id, policy)
        return policy

    def clear_cache(self, organization_id: Optional[str] = None) -> int:
        """
        Drop cached policies, for one organization or for all of them.

        Returns:
            Number of entries removed
        """
        if organization_id is None:
            count = self.cache.clear()
            self.logger.info(f"Cleared {count} cached booking policies")
            return count

        removed = self.cache.invalidate(organization_id)
        self.logger.info(f"Invalidated cached booking policy for {organization_id}")
        return 1 if removed else 0

    @BaseService.measure_operation("update_booking_settings")
    def update_booking_settings(
        self,
        organization_id: str,
        update: Union[BookingPolicyUpdate, Dict[str, Any]],
    ) -> BookingPolicy:
        """
        Merge a partial change over the current policy, persist it, invalidate the cache.

        Raises:
            ValidationException: The merged policy is invalid
            NotFoundException: The organization does not exist
        """
        changes = (
            update.changes()
            if isinstance(update, BookingPolicyUpdate)
            else BookingPolicyUpdate.model_validate(update).changes()
        )
        current = self.get_booking_settings(organization_id)
        merged = {**current.model_dump(), **changes}

        try:
            policy = BookingPolicy.model_validate(merged)
        except ValidationError as e:
            raise ValidationException(
                "Invalid booking settings",
                code="INVALID_BOOKING_SETTINGS",
                details={"errors": [error["msg"] for error in e.errors()]},
            ) from e

        with self.transaction():
            saved = self.organization_repository.save_booking_settings(
                organization_id, policy.model_dump()
            )
            if not saved:
                raise NotFoundException(
                    f"Organization {organization_id} not found", code="ORGANIZATION_NOT_FOUND"
                )

        self.cache.invalidate(organization_id)
        self.logger.info(
            f"Updated booking settings for {organization_id}: {sorted(changes.keys())}"
        )
        return policy

    def _parse(self, document: Any) -> Optional[BookingPolicy]:
        if not isinstance(document, dict):
            self.logger.warning(f"Booking settings document is not a mapping: {type(document)}")
            return None

        missing = [field for field in POLICY_FIELDS if document.get(field) is None]
        if missing:
            self.logger.warning(f"Booking settings missing fields: {missing}")
            return None

        try:
            return BookingPolicy.model_validate({field: document[field] for field in POLICY_FIELDS})
        except ValidationError as e:
            self.logger.warning(
                f"Booking settings rejected: {[error['msg'] for error in e.errors()]}"
            )
            return None

    def _fallback(self, organization_id: str, reason: str, detail: str) -> BookingPolicy:
        self.logger.warning(
            f"Using default booking policy for {organization_id} ({reason}): {detail}"
        )
        prometheus_metrics.record_policy_fallback(reason)
        return BookingPolicy.defaults()
