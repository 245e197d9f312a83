"""System-wide constants. Magic strings and fixed upstream parameters live here."""

from __future__ import annotations

# ── API keys ─────────────────────────────────────────────────────
API_KEY_PREFIX = "cg_"
API_KEY_RANDOM_BYTES = 32

# ── Pricing feed query (fixed shape) ─────────────────────────────
PRICING_FEED_PAGE = 0
PRICING_FEED_PAGE_SIZE = 100
PRICING_FEED_CONVERT = ("USD", "MNT", "CNY", "BTC")

# ── Metered endpoints ────────────────────────────────────────────
ENDPOINT_CRYPTO_LISTING = "/api/crypto"

# ── Error bodies ─────────────────────────────────────────────────
INTERNAL_ERROR_MESSAGE = "Internal Server Error"
