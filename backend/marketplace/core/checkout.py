"""Checkout Math — shipping zones, order totals and provider amounts.

Invariants:
    - Missing country means GB; free_shipping listings always ship at 0
    - platform_fee = buyer fee + seller fee; seller_amount = fees.total_seller_receives
    - Provider amounts are integer minor units (pence/cents)
    - Only active listings owned by someone else can be bought
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from marketplace.core.domain_types import ListingStatus, ZERO, to_money
from marketplace.core.errors import BusinessRuleError
from marketplace.core.fees import FeeBreakdown, FeeRequest, calculate_fees

EUROPE_COUNTRIES = frozenset({
    "FR", "DE", "IT", "ES", "NL", "BE", "IE", "AT", "PT", "DK", "SE", "FI", "NO",
})


@dataclass(frozen=True)
class ShippingRates:
    free_shipping: bool
    uk: Decimal | None
    europe: Decimal | None
    international: Decimal | None


@dataclass(frozen=True)
class CheckoutTotals:
    item_price: Decimal
    shipping_cost: Decimal
    buyer_fee: Decimal
    seller_fee: Decimal
    platform_fee: Decimal
    total_amount: Decimal
    seller_amount: Decimal
    currency: str
    fees: FeeBreakdown


def check_purchasable(listing_status: str, seller_id: UUID, buyer_id: UUID) -> None:
    if listing_status != ListingStatus.ACTIVE.value:
        raise BusinessRuleError("Listing not active", "LISTING_NOT_ACTIVE")
    if seller_id == buyer_id:
        raise BusinessRuleError("Cannot buy your own listing", "SELF_PURCHASE")


def shipping_zone(country: str | None) -> str:
    code = (country or "GB").strip().upper() or "GB"
    if code == "GB":
        return "uk"
    if code in EUROPE_COUNTRIES:
        return "europe"
    return "international"


def shipping_cost_for(rates: ShippingRates, country: str | None) -> Decimal:
    if rates.free_shipping:
        return ZERO
    zone = shipping_zone(country)
    return to_money(getattr(rates, zone))


def build_checkout_totals(
    item_price: Decimal,
    shipping_cost: Decimal,
    currency: str,
    buyer_tier: str = "free",
    seller_tier: str = "free",
    seller_risk_tier: str = "A",
) -> CheckoutTotals:
    fees = calculate_fees(FeeRequest(
        item_price=to_money(item_price),
        currency=currency,
        shipping_cost=to_money(shipping_cost),
        buyer_tier=buyer_tier,
        seller_tier=seller_tier,
        seller_risk_tier=seller_risk_tier,
    ))
    return CheckoutTotals(
        item_price=fees.item_price,
        shipping_cost=fees.shipping_cost,
        buyer_fee=fees.buyer_transaction_fee,
        seller_fee=fees.seller_transaction_fee,
        platform_fee=to_money(fees.buyer_transaction_fee + fees.seller_transaction_fee),
        total_amount=fees.total_buyer_pays,
        seller_amount=fees.total_seller_receives,
        currency=fees.currency,
        fees=fees,
    )


def to_minor_units(amount: Decimal) -> int:
    return int(to_money(amount) * 100)
