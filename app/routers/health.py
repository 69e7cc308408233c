# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# Liveness and readiness checks for the hosting platform. Readiness touches
# both halves of the backend the intake flow writes to: PostgREST and Storage.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app import __version__
from app.config import settings
from core.services.storage_service import StorageService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Process-level status."""
    status: str
    timestamp: str
    environment: str = settings.ENVIRONMENT
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Backend reachability, one entry per dependency."""
    status: str
    checks: dict[str, str] = Field(default_factory=dict)
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _run_check(check: Callable[[], object]) -> str:
    """Run one dependency check and describe the outcome."""
    try:
        check()
        return "healthy"
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return f"unhealthy: {str(e)[:50]}"


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health status for load balancers and monitoring."""
    return HealthResponse(status="healthy", timestamp=_now())


@router.get("/health/live", response_model=HealthResponse)
async def liveness_check():
    """The process is up and serving requests."""
    return HealthResponse(status="alive", timestamp=_now())


@router.get("/health/ready", response_model=ReadinessResponse)
def readiness_check():
    """
    Whether the database and storage bucket are reachable.

    Reports "degraded" instead of failing so the payload stays readable.
    """
    checks = {
        "database": _run_check(
            lambda: SupabaseClient.get_client().table("services").select("id").limit(1).execute()
        ),
        "storage": _run_check(StorageService.list_buckets),
    }
    ready = all(result == "healthy" for result in checks.values())

    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=_now(),
    )
