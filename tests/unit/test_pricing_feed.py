"""Tests for PricingFeedClient and ListingService (httpx.MockTransport upstream)."""

from __future__ import annotations

import httpx
import pytest

from creditgate.core.exceptions import (
    QuotaExceededError,
    UnknownApiKeyError,
    UpstreamError,
)
from creditgate.saas.auth import AuthService
from creditgate.saas.pricing_feed import ListingService, PricingFeedClient
from creditgate.saas.quota import QuotaService

FEED_URL = "http://feed.test/crypto/listing/local"
LISTING = {"data": [{"symbol": "BTC", "quote": {"USD": {"price": 1.0}}}], "total": 1}


def _client(handler) -> PricingFeedClient:  # type: ignore[no-untyped-def]
    return PricingFeedClient(FEED_URL, timeout=2.0, transport=httpx.MockTransport(handler))


class TestPricingFeedClient:
    @pytest.mark.asyncio
    async def test_fixed_query_and_verbatim_payload(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=LISTING)

        payload = await _client(handler).fetch_listing()
        assert payload == LISTING
        assert len(seen) == 1
        req = seen[0]
        assert req.method == "GET"
        assert req.url.path == "/crypto/listing/local"
        assert req.url.params["page"] == "0"
        assert req.url.params["pageSize"] == "100"
        assert req.url.params["convert"] == "USD,MNT,CNY,BTC"

    @pytest.mark.asyncio
    async def test_non_2xx_raises_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "down"})

        with pytest.raises(UpstreamError) as exc_info:
            await _client(handler).fetch_listing()
        assert exc_info.value.status_code == 500
        assert exc_info.value.client_message == "Internal Server Error"

    @pytest.mark.asyncio
    async def test_transport_error_raises_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError):
            await _client(handler).fetch_listing()

    @pytest.mark.asyncio
    async def test_invalid_json_raises_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"not json")

        with pytest.raises(UpstreamError):
            await _client(handler).fetch_listing()

    @pytest.mark.asyncio
    async def test_no_retry(self) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500)

        with pytest.raises(UpstreamError):
            await _client(handler).fetch_listing()
        assert calls == 1


class TestListingService:
    @pytest.mark.asyncio
    async def test_serves_and_bills(self, auth: AuthService, quota: QuotaService) -> None:
        key = (await auth.signup("Ann", "ann@x.com", "password1")).bundle.api_key.api_key_val
        service = ListingService(
            quota, _client(lambda r: httpx.Response(200, json=LISTING)), credit_cost=2
        )

        assert await service.fetch_for_key(key) == LISTING
        assert (await quota.check_quota(key)).used_credit == 2

    @pytest.mark.asyncio
    async def test_quota_exhaustion_blocks_upstream(
        self, auth: AuthService, quota: QuotaService
    ) -> None:
        key = (await auth.signup("Ann", "ann@x.com", "password1")).bundle.api_key.api_key_val
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json=LISTING)

        service = ListingService(quota, _client(handler), credit_cost=1)
        for _ in range(5):
            await service.fetch_for_key(key)

        with pytest.raises(QuotaExceededError):
            await service.fetch_for_key(key)
        assert calls == 5

    @pytest.mark.asyncio
    async def test_unknown_key_never_calls_upstream(self, quota: QuotaService) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("upstream must not be called")

        service = ListingService(quota, _client(handler))
        with pytest.raises(UnknownApiKeyError):
            await service.fetch_for_key("cg_missing")

    @pytest.mark.asyncio
    async def test_failed_upstream_not_billed(
        self, auth: AuthService, quota: QuotaService
    ) -> None:
        key = (await auth.signup("Ann", "ann@x.com", "password1")).bundle.api_key.api_key_val
        service = ListingService(quota, _client(lambda r: httpx.Response(502)))
        with pytest.raises(UpstreamError):
            await service.fetch_for_key(key)
        assert (await quota.check_quota(key)).used_credit == 0

    @pytest.mark.asyncio
    async def test_multi_credit_calls_stay_within_limit(
        self, auth: AuthService, quota: QuotaService
    ) -> None:
        key = (await auth.signup("Ann", "ann@x.com", "password1")).bundle.api_key.api_key_val
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json=LISTING)

        # Plan limit is 5: two calls bill 4, a third would bill 6.
        service = ListingService(quota, _client(handler), credit_cost=2)
        await service.fetch_for_key(key)
        await service.fetch_for_key(key)

        with pytest.raises(QuotaExceededError) as exc_info:
            await service.fetch_for_key(key)
        assert exc_info.value.status_code == 404
        assert calls == 2
        assert (await quota.check_quota(key)).used_credit == 4
