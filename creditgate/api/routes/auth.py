"""Authentication routes — signup and password login."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from creditgate.api.deps import get_auth_service
from creditgate.api.models.schemas import (
    AccountOut,
    ApiKeyOut,
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
)
from creditgate.saas.auth import AuthService

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=SignupResponse)
async def signup(
    body: SignupRequest,
    auth: AuthService = Depends(get_auth_service),
) -> SignupResponse:
    """Create an account, its api key and default plan; return a session token."""
    result = await auth.signup(body.name, body.email, body.password)
    return SignupResponse(
        token=result.token,
        account=AccountOut.from_account(result.bundle.account),
        api_key=ApiKeyOut.from_api_key(result.bundle.api_key),
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Exchange email + password for a fresh session token."""
    result = await auth.login(body.email, body.password)
    return LoginResponse(
        token=result.token,
        account=AccountOut.from_account(result.bundle.account),
    )
