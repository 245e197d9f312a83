"""Pydantic V2 request/response schemas for the creditgate API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from creditgate.core.types import Account, ApiKey, SessionClaims

MIN_PASSWORD_LENGTH = 8


def _check_email(value: str) -> str:
    value = value.strip()
    try:
        validate_email(value, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError as exc:
        raise PydanticCustomError("invalid_email", "invalid email") from exc
    return value


# ── Requests ──────────────────────────────────────────────────────

class SignupRequest(BaseModel):
    """Request body for POST /signup."""

    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("name_required", "name is required")
        return value.strip()

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def _password_length(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise PydanticCustomError("password_too_short", "password required")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /login.

    Only presence is checked for the password; a wrong password of any
    length is reported as bad credentials, not as a validation failure.
    """

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def _password_present(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password_required", "password required")
        return value


class ApiCryptoRequest(BaseModel):
    """Request body for GET /api/crypto."""

    api_key_val: str

    @field_validator("api_key_val")
    @classmethod
    def _key_present(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("api_key_required", "api key required")
        return value.strip()


# ── Responses ────────────────────────────────────────────────────

class AccountOut(BaseModel):
    """Public view of an account, without the password hash."""

    user_id: str
    name: str
    email: str
    created_at: datetime

    @classmethod
    def from_account(cls, account: Account) -> AccountOut:
        return cls(
            user_id=account.user_id,
            name=account.name,
            email=account.email,
            created_at=account.created_at,
        )


class ApiKeyOut(BaseModel):
    api_key_id: str
    api_key_val: str
    owner_id: str
    created_at: datetime
    rotated_at: datetime | None = None

    @classmethod
    def from_api_key(cls, api_key: ApiKey) -> ApiKeyOut:
        return cls(
            api_key_id=api_key.api_key_id,
            api_key_val=api_key.api_key_val,
            owner_id=api_key.owner_id,
            created_at=api_key.created_at,
            rotated_at=api_key.rotated_at,
        )


class SignupResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    account: AccountOut
    api_key: ApiKeyOut = Field(alias="apiKey")


class LoginResponse(BaseModel):
    token: str
    account: AccountOut


class ProfileResponse(BaseModel):
    """Echo of the verified Session Token claims."""

    user_id: str
    name: str
    email: str
    api_key_val: str
    plan_name: str
    plan_limit: int
    iat: int | None = None
    exp: int | None = None

    @classmethod
    def from_claims(cls, claims: SessionClaims) -> ProfileResponse:
        return cls(
            user_id=claims.user_id,
            name=claims.name,
            email=claims.email,
            api_key_val=claims.api_key_val,
            plan_name=claims.plan_name,
            plan_limit=claims.plan_limit,
            iat=claims.issued_at,
            exp=claims.expires_at,
        )


class RegenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str
    api_key: ApiKeyOut = Field(alias="apiKey")


class UsageResponse(BaseModel):
    """Current-month credit usage for the session's api key."""

    plan_name: str
    plan_limit: int
    used_credit: int
    remaining_credit: int
    within_limit: bool
    period_start: datetime
    period_end: datetime


class CryptoListingResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response_data: Any = Field(alias="responseData")


# ── Generic ───────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    environment: str = "dev"
