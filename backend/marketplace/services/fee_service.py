"""Fee Service — resolves membership tiers, then delegates to core.fees."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.domain_types import MembershipTier, utcnow
from marketplace.core.fees import (
    FeeBreakdown, FeeRequest, calculate_fees, effective_tier,
)
from marketplace.models.profile import Profile
from marketplace.schemas.fees import FeeCalculateRequest

logger = logging.getLogger(__name__)


async def resolve_tiers(
    db: AsyncSession,
    buyer_id: UUID | None,
    seller_id: UUID | None,
    now: datetime | None = None,
) -> tuple[str, str, str]:
    """(buyer_tier, seller_tier, seller_risk_tier); unknown users count as free / A."""
    now = now or utcnow()
    buyer_tier = MembershipTier.FREE.value
    seller_tier = MembershipTier.FREE.value
    risk_tier = "A"
    if buyer_id:
        buyer = await db.get(Profile, buyer_id)
        if buyer:
            buyer_tier = effective_tier(buyer.membership_tier, buyer.promo_expires_at, now)
    if seller_id:
        seller = await db.get(Profile, seller_id)
        if seller:
            seller_tier = effective_tier(seller.membership_tier, seller.promo_expires_at, now)
            risk_tier = seller.risk_tier or "A"
    return buyer_tier, seller_tier, risk_tier


async def calculate(db: AsyncSession, body: FeeCalculateRequest) -> FeeBreakdown:
    if body.preview_only:
        tiers = (MembershipTier.FREE.value, MembershipTier.FREE.value, "A")
    else:
        tiers = await resolve_tiers(db, body.buyer_id, body.seller_id)
    request = FeeRequest(
        item_price=body.item_price,
        currency=body.currency,
        instant_payout=body.instant_payout,
        protection_addon=body.protection_addon,
        shipping_cost=body.shipping_cost,
        wholesale_shipping_cost=body.wholesale_shipping_cost,
        buyer_tier=tiers[0],
        seller_tier=tiers[1],
        seller_risk_tier=tiers[2],
    )
    breakdown = calculate_fees(request)
    logger.info(
        f"Calculated fees for {breakdown.item_price} {breakdown.currency}",
        extra={"amount": str(breakdown.total_buyer_pays)},
    )
    return breakdown
