"""Custom exception hierarchy for creditgate.

Every error carries the HTTP status it maps to at the API boundary.
"""

from __future__ import annotations

from typing import Any


class CreditGateError(Exception):
    """Base exception for all creditgate errors."""

    status_code: int = 500
    public_message: str | None = None

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = context or {}

    @property
    def client_message(self) -> str:
        """Message safe to return to the caller."""
        return self.public_message or self.message


# ── Input ────────────────────────────────────────────────────────

class InvalidInputError(CreditGateError):
    """Request body failed shape validation."""

    status_code = 400


class DuplicateAccountError(CreditGateError):
    """An account with this email already exists."""

    status_code = 400


# ── Login ────────────────────────────────────────────────────────

class AccountNotFoundError(CreditGateError):
    """No account is registered under the given email."""

    status_code = 401


class BadCredentialsError(CreditGateError):
    """The account exists but the password does not match."""

    status_code = 402


# ── Session / API key ────────────────────────────────────────────

class UnauthenticatedError(CreditGateError):
    """No bearer token was presented."""

    status_code = 401


class InvalidTokenError(CreditGateError):
    """Bearer token is malformed, tampered with, or expired."""

    status_code = 403


class UnknownApiKeyError(CreditGateError):
    """No ApiKey row holds the presented value."""

    status_code = 403


class StaleCredentialError(CreditGateError):
    """The token's embedded api key no longer matches the stored one."""

    status_code = 404


class QuotaExceededError(CreditGateError):
    """Monthly credit limit for the plan has been used up."""

    status_code = 404


# ── Upstream ─────────────────────────────────────────────────────

class UpstreamError(CreditGateError):
    """Pricing feed call failed (transport error or non-2xx status)."""

    status_code = 500
    public_message = "Internal Server Error"
