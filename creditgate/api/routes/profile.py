"""Session-authenticated routes: profile echo, key rotation, usage."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from creditgate.api.deps import (
    get_key_manager,
    get_quota_service,
    require_session,
)
from creditgate.api.models.schemas import (
    ApiKeyOut,
    ProfileResponse,
    RegenerateResponse,
    UsageResponse,
)
from creditgate.core.types import SessionClaims
from creditgate.saas.auth import AuthService
from creditgate.saas.keys import KeyManager
from creditgate.saas.quota import QuotaService

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(claims: SessionClaims = Depends(require_session)) -> ProfileResponse:
    """Return the claims of the presented token."""
    return ProfileResponse.from_claims(AuthService.get_profile(claims))


@router.post("/regenerate", response_model=RegenerateResponse)
async def regenerate_key(
    claims: SessionClaims = Depends(require_session),
    keys: KeyManager = Depends(get_key_manager),
) -> RegenerateResponse:
    """Rotate the api key and return a token embedding the new value."""
    result = await keys.regenerate_key(claims)
    return RegenerateResponse(
        token=result.token,
        api_key=ApiKeyOut.from_api_key(result.api_key),
    )


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    claims: SessionClaims = Depends(require_session),
    quota: QuotaService = Depends(get_quota_service),
) -> UsageResponse:
    """Current-month credit usage for the key embedded in the token."""
    status = await quota.check_quota(claims.api_key_val)
    return UsageResponse(
        plan_name=status.plan.plan_name,
        plan_limit=status.plan.plan_limit,
        used_credit=status.used_credit,
        remaining_credit=status.remaining_credit,
        within_limit=status.within_limit,
        period_start=status.period_start,
        period_end=status.period_end,
    )
