"""Pricing feed proxy — quota-gated passthrough to the upstream crypto listing."""

from __future__ import annotations

from typing import Any

import httpx

from creditgate.core.constants import (
    ENDPOINT_CRYPTO_LISTING,
    PRICING_FEED_CONVERT,
    PRICING_FEED_PAGE,
    PRICING_FEED_PAGE_SIZE,
)
from creditgate.core.exceptions import UpstreamError
from creditgate.core.logging import get_logger
from creditgate.saas.quota import QuotaService

log = get_logger(__name__)


class PricingFeedClient:
    """Fetches the fixed-shape listing from the upstream pricing feed.

    No retries. A transport failure, timeout or non-2xx response raises
    UpstreamError.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @staticmethod
    def listing_params() -> dict[str, str | int]:
        return {
            "page": PRICING_FEED_PAGE,
            "pageSize": PRICING_FEED_PAGE_SIZE,
            "convert": ",".join(PRICING_FEED_CONVERT),
        }

    async def fetch_listing(self) -> Any:
        """GET the listing and return its decoded JSON unmodified."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.get(self._url, params=self.listing_params())
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            log.error(
                "pricing_feed_failed",
                url=self._url,
                status_code=exc.response.status_code,
            )
            raise UpstreamError(
                "pricing feed returned an error status",
                context={"status_code": exc.response.status_code},
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            log.error("pricing_feed_failed", url=self._url, error=str(exc))
            raise UpstreamError(
                "pricing feed request failed", context={"error": str(exc)}
            ) from exc


class ListingService:
    """Quota check, upstream fetch, then bill the call."""

    def __init__(
        self,
        quota: QuotaService,
        feed: PricingFeedClient,
        credit_cost: int = 1,
    ) -> None:
        self._quota = quota
        self._feed = feed
        self._credit_cost = credit_cost

    async def fetch_for_key(self, api_key_val: str) -> Any:
        status = await self._quota.enforce(api_key_val, credit_cost=self._credit_cost)
        payload = await self._feed.fetch_listing()
        await self._quota.record_usage(
            status.api_key, self._credit_cost, endpoint=ENDPOINT_CRYPTO_LISTING
        )
        log.info(
            "pricing_feed_served",
            api_key_id=status.api_key.api_key_id,
            used_credit=status.used_credit + self._credit_cost,
            plan_limit=status.plan.plan_limit,
        )
        return payload
