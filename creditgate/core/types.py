"""Shared record types passed between the store, services and API layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Stored records ───────────────────────────────────────────────

@dataclass
class Account:
    """A registered user. ``password_hash`` is the argon2 hash, never plaintext."""

    user_id: str
    name: str
    email: str
    password_hash: str = field(repr=False)
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class ApiKey:
    """The external credential for the metered endpoint."""

    api_key_id: str
    api_key_val: str = field(repr=False)
    owner_id: str
    created_at: datetime = field(default_factory=_utcnow)
    rotated_at: datetime | None = None


@dataclass
class Plan:
    """Usage policy bound to one ApiKey."""

    plan_id: str
    plan_key_id: str
    plan_name: str
    plan_limit: int
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class UsageLog:
    """One metered call billed against an ApiKey."""

    log_id: str
    log_key_id: str
    credit_cost: int
    used_date: datetime
    endpoint: str = ""


@dataclass
class AccountBundle:
    """An account together with its current key and plan."""

    account: Account
    api_key: ApiKey
    plan: Plan


# ── Service results ──────────────────────────────────────────────

@dataclass
class SessionClaims:
    """Snapshot carried inside a Session Token."""

    user_id: str
    name: str
    email: str
    api_key_val: str
    plan_name: str
    plan_limit: int
    issued_at: int | None = None
    expires_at: int | None = None

    @classmethod
    def from_bundle(cls, bundle: AccountBundle) -> SessionClaims:
        return cls(
            user_id=bundle.account.user_id,
            name=bundle.account.name,
            email=bundle.account.email,
            api_key_val=bundle.api_key.api_key_val,
            plan_name=bundle.plan.plan_name,
            plan_limit=bundle.plan.plan_limit,
        )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SessionClaims:
        """Build claims from a decoded token payload.

        Raises KeyError/ValueError if a required claim is missing or malformed.
        """
        return cls(
            user_id=str(payload["user_id"]),
            name=str(payload["name"]),
            email=str(payload["email"]),
            api_key_val=str(payload["api_key_val"]),
            plan_name=str(payload["plan_name"]),
            plan_limit=int(payload["plan_limit"]),
            issued_at=payload.get("iat"),
            expires_at=payload.get("exp"),
        )

    def to_payload(self) -> dict[str, Any]:
        """Claims to sign, excluding the time fields the signer adds."""
        return {
            "sub": self.user_id,
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "api_key_val": self.api_key_val,
            "plan_name": self.plan_name,
            "plan_limit": self.plan_limit,
        }


@dataclass
class AuthResult:
    """Token plus the account state it was issued for."""

    token: str
    bundle: AccountBundle


@dataclass
class RotationResult:
    token: str
    api_key: ApiKey
    plan: Plan


@dataclass
class QuotaStatus:
    """Outcome of a monthly credit check for one key."""

    api_key: ApiKey
    plan: Plan
    used_credit: int
    period_start: datetime
    period_end: datetime

    @property
    def within_limit(self) -> bool:
        return self.used_credit < self.plan.plan_limit

    def allows(self, credit_cost: int) -> bool:
        """True if billing ``credit_cost`` more keeps usage within the plan limit."""
        return self.used_credit + credit_cost <= self.plan.plan_limit

    @property
    def remaining_credit(self) -> int:
        return max(self.plan.plan_limit - self.used_credit, 0)
