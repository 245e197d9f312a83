"""Health check endpoint — no auth required."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from creditgate import __version__
from creditgate.api.deps import Services, get_services
from creditgate.api.models.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(services: Services = Depends(get_services)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        environment=services.settings.creditgate_env,
    )
