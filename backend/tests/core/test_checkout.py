"""Checkout Math — shipping zones, totals and minor units."""

import uuid
from decimal import Decimal

import pytest

from marketplace.core.checkout import (
    ShippingRates, build_checkout_totals, check_purchasable, shipping_cost_for,
    shipping_zone, to_minor_units,
)
from marketplace.core.errors import BusinessRuleError

RATES = ShippingRates(
    free_shipping=False,
    uk=Decimal("3.00"),
    europe=Decimal("8.00"),
    international=None,
)


def test_missing_country_ships_as_uk():
    assert shipping_zone(None) == "uk"
    assert shipping_zone(" ") == "uk"
    assert shipping_zone("gb") == "uk"


def test_europe_and_international_zones():
    assert shipping_zone("FR") == "europe"
    assert shipping_zone("US") == "international"


def test_shipping_cost_by_zone():
    assert shipping_cost_for(RATES, "DE") == Decimal("8.00")
    assert shipping_cost_for(RATES, None) == Decimal("3.00")


def test_unset_zone_cost_is_zero():
    assert shipping_cost_for(RATES, "JP") == Decimal("0.00")


def test_free_shipping_overrides_rates():
    free = ShippingRates(True, Decimal("3"), Decimal("8"), Decimal("12"))
    assert shipping_cost_for(free, "US") == Decimal("0.00")


def test_totals_combine_fees_and_shipping():
    totals = build_checkout_totals(Decimal("50"), Decimal("3.00"), "GBP")
    assert totals.buyer_fee == Decimal("0.70")
    assert totals.seller_fee == Decimal("0.70")
    assert totals.platform_fee == Decimal("1.40")
    assert totals.total_amount == Decimal("53.70")
    assert totals.seller_amount == Decimal("49.30")


def test_minor_units():
    assert to_minor_units(Decimal("53.70")) == 5370
    assert to_minor_units(Decimal("0.01")) == 1


def test_only_active_listings_purchasable():
    with pytest.raises(BusinessRuleError) as exc:
        check_purchasable("sold", uuid.uuid4(), uuid.uuid4())
    assert exc.value.code == "LISTING_NOT_ACTIVE"


def test_cannot_buy_own_listing():
    owner = uuid.uuid4()
    with pytest.raises(BusinessRuleError) as exc:
        check_purchasable("active", owner, owner)
    assert exc.value.code == "SELF_PURCHASE"
