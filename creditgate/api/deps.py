"""FastAPI dependency injection — service instances built once per app."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from config.settings import Settings
from creditgate.api.middleware import extract_bearer_token
from creditgate.core.types import SessionClaims
from creditgate.saas.auth import AuthService
from creditgate.saas.keys import KeyManager
from creditgate.saas.passwords import PasswordHasher
from creditgate.saas.pricing_feed import ListingService, PricingFeedClient
from creditgate.saas.quota import QuotaService
from creditgate.saas.tokens import SessionTokenManager
from creditgate.store.credentials import CredentialStore


@dataclass
class Services:
    """Everything a request handler may need, wired from one Settings."""

    settings: Settings
    engine: AsyncEngine
    store: CredentialStore
    auth: AuthService
    keys: KeyManager
    quota: QuotaService
    listings: ListingService


def build_services(
    settings: Settings,
    engine: AsyncEngine,
    *,
    feed_transport: httpx.AsyncBaseTransport | None = None,
    hasher: PasswordHasher | None = None,
) -> Services:
    """Construct the service graph around an existing engine."""
    store = CredentialStore(engine)
    tokens = SessionTokenManager(
        secret=settings.jwt_secret.get_secret_value(),
        expiry_minutes=settings.jwt_expiry_minutes,
        algorithm=settings.jwt_algorithm,
    )
    quota = QuotaService(store)
    feed = PricingFeedClient(
        settings.pricing_feed_url,
        timeout=settings.pricing_feed_timeout_seconds,
        transport=feed_transport,
    )
    return Services(
        settings=settings,
        engine=engine,
        store=store,
        auth=AuthService(
            store,
            hasher or PasswordHasher(),
            tokens,
            default_plan_name=settings.default_plan_name,
            default_plan_limit=settings.default_plan_limit,
        ),
        keys=KeyManager(store, tokens),
        quota=quota,
        listings=ListingService(quota, feed, credit_cost=settings.usage_credit_cost),
    )


# ── Providers ─────────────────────────────────────────────────────


def get_services(request: Request) -> Services:
    return request.app.state.services  # type: ignore[no-any-return]


def get_auth_service(services: Services = Depends(get_services)) -> AuthService:
    return services.auth


def get_key_manager(services: Services = Depends(get_services)) -> KeyManager:
    return services.keys


def get_quota_service(services: Services = Depends(get_services)) -> QuotaService:
    return services.quota


def get_listing_service(services: Services = Depends(get_services)) -> ListingService:
    return services.listings


# ── Auth dependency ───────────────────────────────────────────────


async def require_session(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> SessionClaims:
    """Return the verified claims of the request's bearer token.

    401 when no Authorization header is sent, 403 when the token is invalid
    or expired. No database lookup: the token alone is authority.
    """
    token = extract_bearer_token(request)
    return auth.verify_session(token)
