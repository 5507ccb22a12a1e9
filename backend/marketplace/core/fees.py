"""Fee Calculation — tiered transaction fees, payout fees and platform revenue.

Invariants:
    - calculate_fees is PURE: tiers are passed in, never looked up here
    - Buyer and seller pay the same tiered fee: base + rate × (price − threshold) above threshold
    - Every monetary output is a 2-place Decimal (ROUND_HALF_UP)
    - Unknown currencies fall back to GBP configuration

Design Decisions:
    - FEE_CONFIG / PROCESSING_COSTS are the single source of truth for fee constants;
      checkout, wallet purchase and the fee preview endpoint all call calculate_fees
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from decimal import Decimal

from marketplace.core.domain_types import (
    MembershipTier, ZERO, as_utc, to_money,
)


@dataclass(frozen=True)
class FeeConfig:
    base_fee: Decimal
    percent_threshold: Decimal
    percent_rate: Decimal


@dataclass(frozen=True)
class ProcessingCost:
    percent: Decimal
    fixed: Decimal


FEE_CONFIG: dict[str, FeeConfig] = {
    "GBP": FeeConfig(Decimal("0.40"), Decimal("20"), Decimal("0.01")),
    "USD": FeeConfig(Decimal("0.50"), Decimal("25"), Decimal("0.01")),
    "EUR": FeeConfig(Decimal("0.45"), Decimal("22"), Decimal("0.01")),
}

# Card processing cost estimates (platform cost, not charged to users)
PROCESSING_COSTS: dict[str, ProcessingCost] = {
    "GBP": ProcessingCost(Decimal("0.015"), Decimal("0.20")),
    "USD": ProcessingCost(Decimal("0.029"), Decimal("0.30")),
    "EUR": ProcessingCost(Decimal("0.025"), Decimal("0.20")),
}

PROTECTION_ADDON_FEE = Decimal("1.50")
INSTANT_PAYOUT_PERCENT = {MembershipTier.PRO.value: 1, MembershipTier.FREE.value: 2}


@dataclass(frozen=True)
class FeeTier:
    base_fee: Decimal
    percentage_fee: Decimal
    total: Decimal


@dataclass(frozen=True)
class FeeRequest:
    item_price: Decimal
    currency: str = "GBP"
    instant_payout: bool = False
    protection_addon: bool = False
    shipping_cost: Decimal = ZERO
    wholesale_shipping_cost: Decimal = ZERO
    buyer_tier: str = MembershipTier.FREE.value
    seller_tier: str = MembershipTier.FREE.value
    seller_risk_tier: str = "A"


@dataclass(frozen=True)
class FeeBreakdown:
    item_price: Decimal
    currency: str
    buyer_transaction_fee: Decimal
    seller_transaction_fee: Decimal
    buyer_fee_breakdown: FeeTier
    seller_fee_breakdown: FeeTier
    instant_payout_fee: Decimal
    instant_payout_percentage: int
    protection_addon_fee: Decimal
    shipping_cost: Decimal
    shipping_margin: Decimal
    platform_revenue: Decimal
    processing_cost: Decimal
    net_platform_revenue: Decimal
    total_buyer_pays: Decimal
    total_seller_receives: Decimal
    buyer_tier: str
    seller_tier: str
    seller_risk_tier: str

    def to_dict(self) -> dict:
        return asdict(self)


def fee_config_for(currency: str) -> FeeConfig:
    return FEE_CONFIG.get(currency.upper(), FEE_CONFIG["GBP"])


def calculate_tiered_fee(item_price: Decimal, currency: str = "GBP") -> FeeTier:
    """Base fee plus percentage on the amount above the currency threshold."""
    config = fee_config_for(currency)
    price = Decimal(item_price)
    percentage_fee = ZERO
    if price > config.percent_threshold:
        percentage_fee = (price - config.percent_threshold) * config.percent_rate
    return FeeTier(
        base_fee=to_money(config.base_fee),
        percentage_fee=to_money(percentage_fee),
        total=to_money(config.base_fee + percentage_fee),
    )


def estimate_processing_cost(total_amount: Decimal, currency: str = "GBP") -> Decimal:
    costs = PROCESSING_COSTS.get(currency.upper(), PROCESSING_COSTS["GBP"])
    return to_money(costs.fixed + Decimal(total_amount) * costs.percent)


def effective_tier(
    membership_tier: str | None,
    promo_expires_at: datetime | None,
    now: datetime,
) -> str:
    """Active promo upgrades to pro; otherwise stored tier, defaulting to free."""
    if promo_expires_at is not None and as_utc(promo_expires_at) > as_utc(now):
        return MembershipTier.PRO.value
    return membership_tier or MembershipTier.FREE.value


def calculate_fees(request: FeeRequest) -> FeeBreakdown:
    """Full fee breakdown for one item. Pure — tiers come from the caller."""
    currency = request.currency.upper()
    price = to_money(request.item_price)
    shipping = to_money(request.shipping_cost)
    wholesale = to_money(request.wholesale_shipping_cost)

    buyer_fee = calculate_tiered_fee(price, currency)
    seller_fee = calculate_tiered_fee(price, currency)

    instant_percent = 0
    instant_fee = ZERO
    if request.instant_payout:
        instant_percent = INSTANT_PAYOUT_PERCENT.get(
            request.seller_tier, INSTANT_PAYOUT_PERCENT[MembershipTier.FREE.value],
        )
        instant_fee = to_money(price * instant_percent / Decimal(100))

    shipping_margin = to_money(shipping - wholesale) if shipping > 0 else ZERO
    addon = PROTECTION_ADDON_FEE if request.protection_addon else ZERO

    total_buyer_pays = to_money(price + buyer_fee.total + shipping + addon)
    total_seller_receives = to_money(price - seller_fee.total - instant_fee)
    platform_revenue = to_money(buyer_fee.total + seller_fee.total + shipping_margin)
    processing_cost = estimate_processing_cost(total_buyer_pays, currency)

    return FeeBreakdown(
        item_price=price,
        currency=currency,
        buyer_transaction_fee=buyer_fee.total,
        seller_transaction_fee=seller_fee.total,
        buyer_fee_breakdown=buyer_fee,
        seller_fee_breakdown=seller_fee,
        instant_payout_fee=instant_fee,
        instant_payout_percentage=instant_percent,
        protection_addon_fee=to_money(addon),
        shipping_cost=shipping,
        shipping_margin=shipping_margin,
        platform_revenue=platform_revenue,
        processing_cost=processing_cost,
        net_platform_revenue=to_money(platform_revenue - processing_cost),
        total_buyer_pays=total_buyer_pays,
        total_seller_receives=total_seller_receives,
        buyer_tier=request.buyer_tier,
        seller_tier=request.seller_tier,
        seller_risk_tier=request.seller_risk_tier,
    )
