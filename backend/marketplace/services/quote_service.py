"""Purchase Quote — totals for buying one listing, shared by card checkout and wallet purchase."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.checkout import (
    CheckoutTotals, ShippingRates, build_checkout_totals, shipping_cost_for,
)
from marketplace.models.listing import Listing
from marketplace.services.fee_service import resolve_tiers


def shipping_rates(listing: Listing) -> ShippingRates:
    return ShippingRates(
        free_shipping=listing.free_shipping,
        uk=listing.shipping_cost_uk,
        europe=listing.shipping_cost_europe,
        international=listing.shipping_cost_international,
    )


async def quote_listing(
    db: AsyncSession, listing: Listing, buyer_id: UUID, country: str | None,
) -> CheckoutTotals:
    buyer_tier, seller_tier, risk_tier = await resolve_tiers(
        db, buyer_id, listing.seller_id,
    )
    return build_checkout_totals(
        listing.seller_price,
        shipping_cost_for(shipping_rates(listing), country),
        listing.currency,
        buyer_tier=buyer_tier,
        seller_tier=seller_tier,
        seller_risk_tier=risk_tier,
    )
