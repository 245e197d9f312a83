"""SaaS layer: accounts, session tokens, api keys, quota and the metered proxy."""

from creditgate.saas.auth import AuthService
from creditgate.saas.keys import KeyManager, generate_api_key
from creditgate.saas.passwords import PasswordHasher
from creditgate.saas.pricing_feed import ListingService, PricingFeedClient
from creditgate.saas.quota import QuotaService, month_window
from creditgate.saas.tokens import SessionTokenManager

__all__ = [
    "AuthService",
    "KeyManager",
    "generate_api_key",
    "PasswordHasher",
    "ListingService",
    "PricingFeedClient",
    "QuotaService",
    "month_window",
    "SessionTokenManager",
]
