"""Bundle Pricing — discounted totals and variant-bundle repricing."""

from decimal import Decimal

import pytest

from marketplace.core.bundle_pricing import (
    VariantSnapshot, display_bundle_price, price_bundle,
    reprice_after_variant_sale, validate_discount,
)


def _variant(price: str, sold: bool = False, quantity: int = 1, available: bool = True):
    return VariantSnapshot(
        price=Decimal(price), quantity=quantity, is_available=available, is_sold=sold,
    )


def test_price_bundle_applies_discount():
    pricing = price_bundle([Decimal("10"), Decimal("20"), Decimal("5")], Decimal("10"))
    assert pricing.individual_total == Decimal("35.00")
    assert pricing.bundle_price == Decimal("31.50")
    assert pricing.savings == Decimal("3.50")
    assert pricing.savings_percent == 10


def test_price_bundle_without_discount():
    pricing = price_bundle([Decimal("4.99"), Decimal("5.01")], Decimal("0"))
    assert pricing.bundle_price == Decimal("10.00")
    assert pricing.savings == Decimal("0.00")
    assert pricing.savings_percent == 0


def test_price_bundle_rejects_full_discount():
    with pytest.raises(ValueError):
        price_bundle([Decimal("10")], Decimal("100"))


def test_validate_discount_bounds():
    assert validate_discount(Decimal("-1")) is not None
    assert validate_discount(Decimal("99.99")) is None


def test_display_price_defaults_to_ninety_percent():
    pricing = display_bundle_price(None, [Decimal("10"), Decimal("10")])
    assert pricing.bundle_price == Decimal("18.00")
    assert pricing.savings_percent == 10


def test_display_price_of_empty_bundle():
    pricing = display_bundle_price(Decimal("0"), [])
    assert pricing.individual_total == Decimal("0.00")
    assert pricing.savings_percent == 0


def test_reprice_marks_sold_when_nothing_left():
    result = reprice_after_variant_sale(
        "variants_only", None, [_variant("5", sold=True)], Decimal("5"), None,
    )
    assert result.mark_sold
    assert result.remaining_variants == 0
    assert result.remaining_bundle_price is None


def test_reprice_keeps_discount_with_two_remaining():
    variants = [_variant("10", sold=True), _variant("20"), _variant("30")]
    result = reprice_after_variant_sale(
        "bundle_with_discount", Decimal("10"), variants, Decimal("54.00"), Decimal("10"),
    )
    assert not result.mark_sold
    assert result.remaining_variants == 2
    assert result.remaining_bundle_price == Decimal("45.00")
    assert result.new_bundle_price == Decimal("45.00")
    assert result.new_discount_percentage is None


def test_reprice_drops_discount_below_two_variants():
    variants = [_variant("10", sold=True), _variant("20")]
    result = reprice_after_variant_sale(
        "bundle_with_discount", Decimal("10"), variants, Decimal("27.00"), Decimal("10"),
    )
    assert result.remaining_bundle_price == Decimal("20.00")
    assert result.new_discount_percentage == Decimal("0.00")


def test_reprice_ignores_unavailable_variants_in_price():
    variants = [_variant("10", sold=True), _variant("20"), _variant("30", quantity=0)]
    result = reprice_after_variant_sale(
        "variants_only", None, variants, Decimal("60"), None,
    )
    assert result.remaining_variants == 2
    assert result.remaining_bundle_price == Decimal("20.00")


def test_reprice_reports_no_change_within_a_penny():
    variants = [_variant("10", sold=True), _variant("20")]
    result = reprice_after_variant_sale(
        "variants_only", None, variants, Decimal("20.01"), None,
    )
    assert result.new_bundle_price is None
