"""Health response schema."""

from typing import List, Literal

from pydantic import Field

from ._strict_base import StrictModel


class HealthResponse(StrictModel):
    status: Literal["healthy", "degraded"]
    version: str
    environment: str
    clinic_timezone: str
    today: str
    date_consistency_issues: List[str] = Field(default_factory=list)
