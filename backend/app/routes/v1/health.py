# backend/app/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancers.

Besides liveness it runs the date consistency check on today's date, so a
host or zone database change that would shift calendar days shows up here.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.api.dependencies.services import get_date_utility
from app.core.config import settings
from app.core.constants import API_VERSION
from app.core.date_utils import DateUtility
from app.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(date_utility: DateUtility = Depends(get_date_utility)) -> HealthResponse:
    today = date_utility.today()
    issues = date_utility.check_timezone_consistency(today)
    if issues:
        logger.error(f"Timezone consistency check failed for {today}: {issues}")

    return HealthResponse(
        status="healthy" if not issues else "degraded",
        version=API_VERSION,
        environment=settings.environment,
        clinic_timezone=settings.clinic_timezone,
        today=today,
        date_consistency_issues=issues,
    )
