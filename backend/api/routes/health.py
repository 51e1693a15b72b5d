"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from shared.config import get_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str
    billing: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports whether the record store and payment processor are configured.
    The API stays up without billing; entitlements then resolve from roles,
    grants and stored rows only.
    """
    settings = get_settings()

    database = (
        "configured"
        if settings.supabase_url and settings.supabase_service_role_key
        else "not_configured"
    )
    if not settings.enable_billing:
        billing = "disabled"
    elif settings.stripe_secret_key:
        billing = "configured"
    else:
        billing = "not_configured"

    return ReadinessResponse(
        status="ready" if database == "configured" else "degraded",
        database=database,
        billing=billing,
    )
