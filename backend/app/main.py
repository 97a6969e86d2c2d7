# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from . import models  # noqa: F401  (register tables on Base.metadata)
from .core.config import settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION
from .core.date_utils import DateUtility
from .database import Base, engine
from .routes.v1 import availability as availability_v1, health as health_v1, prometheus

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(
        f"Environment: {settings.environment}, clinic timezone: {settings.clinic_timezone}, "
        f"policy cache: {settings.policy_cache_backend}"
    )

    if engine.dialect.name == "sqlite":
        # Local SQLite databases are created on the fly; server databases are migrated
        Base.metadata.create_all(bind=engine)

    date_utility = DateUtility(settings.clinic_timezone)
    issues = date_utility.check_timezone_consistency(date_utility.today())
    if issues:
        logger.error(f"Timezone consistency check failed at startup: {issues}")

    yield

    logger.info(f"{API_TITLE} shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# Mount v1 routes
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(health_v1.router)

app.include_router(api_v1)

# Infrastructure routes (intentionally unversioned)
app.include_router(prometheus.router)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": f"{API_TITLE} {API_VERSION}", "docs": "/docs"}
