"""Metered pricing-feed proxy, authenticated by api key."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from creditgate.api.deps import get_listing_service
from creditgate.api.models.schemas import ApiCryptoRequest, CryptoListingResponse
from creditgate.saas.pricing_feed import ListingService

router = APIRouter(prefix="/api", tags=["crypto"])


@router.get("/crypto", response_model=CryptoListingResponse)
async def crypto_listing(
    body: ApiCryptoRequest,
    listings: ListingService = Depends(get_listing_service),
) -> CryptoListingResponse:
    """Check the key's monthly quota, then return the upstream listing verbatim."""
    payload = await listings.fetch_for_key(body.api_key_val)
    return CryptoListingResponse(response_data=payload)
