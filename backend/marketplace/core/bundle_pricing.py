"""Bundle Pricing — discounted bundle totals and variant-bundle repricing.

Invariants:
    - price_bundle: bundle_price = individual_total × (1 − discount/100), discount in [0, 100)
    - savings_percent is a whole number; 0 when the individual total is 0
    - reprice_after_variant_sale only counts variants that are available, unsold, quantity > 0
    - A discounted variant bundle keeps its discount only while >= 2 variants count

Design Decisions:
    - reprice returns a descriptor (what to write), the service applies it to the listing
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from marketplace.core.domain_types import BundleType, ZERO, to_money

DEFAULT_DISPLAY_DISCOUNT = Decimal("0.9")
MIN_DISCOUNTED_VARIANTS = 2
CHANGE_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class BundlePricing:
    individual_total: Decimal
    bundle_price: Decimal
    savings: Decimal
    savings_percent: int


@dataclass(frozen=True)
class VariantSnapshot:
    price: Decimal
    quantity: int
    is_available: bool
    is_sold: bool


@dataclass(frozen=True)
class VariantRepricing:
    mark_sold: bool
    remaining_variants: int
    remaining_bundle_price: Decimal | None
    new_bundle_price: Decimal | None
    new_discount_percentage: Decimal | None


def validate_discount(discount_percent: Decimal) -> str | None:
    """Return an error message, or None when the discount is usable."""
    if discount_percent < 0:
        return "discount_percentage must not be negative"
    if discount_percent >= 100:
        return "discount_percentage must be below 100"
    return None


def _savings_percent(savings: Decimal, total: Decimal) -> int:
    if total <= 0:
        return 0
    return int((savings / total * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def price_bundle(
    child_prices: Iterable[Decimal], discount_percent: Decimal,
) -> BundlePricing:
    """Sum child prices and apply the bundle discount."""
    error = validate_discount(Decimal(discount_percent))
    if error:
        raise ValueError(error)
    total = to_money(sum((Decimal(p) for p in child_prices), ZERO))
    bundle_price = to_money(total * (1 - Decimal(discount_percent) / 100))
    savings = to_money(total - bundle_price)
    return BundlePricing(
        individual_total=total,
        bundle_price=bundle_price,
        savings=savings,
        savings_percent=_savings_percent(savings, total),
    )


def display_bundle_price(
    stored_price: Decimal | None, child_prices: Iterable[Decimal],
) -> BundlePricing:
    """Pricing block for display; bundles without a stored price show 90% of the total."""
    total = to_money(sum((Decimal(p) for p in child_prices), ZERO))
    if stored_price is None:
        bundle_price = to_money(total * DEFAULT_DISPLAY_DISCOUNT)
    else:
        bundle_price = to_money(stored_price)
    savings = to_money(total - bundle_price)
    return BundlePricing(
        individual_total=total,
        bundle_price=bundle_price,
        savings=savings,
        savings_percent=_savings_percent(savings, total),
    )


def _changed(new: Decimal | None, current: Decimal | None) -> bool:
    if new is None or current is None:
        return False
    return abs(Decimal(new) - Decimal(current)) > CHANGE_TOLERANCE


def reprice_after_variant_sale(
    bundle_type: str | None,
    discount_percent: Decimal | None,
    variants: list[VariantSnapshot],
    current_bundle_price: Decimal | None,
    current_discount: Decimal | None,
) -> VariantRepricing:
    """Recompute a variant bundle once one of its variants has sold. Pure."""
    unsold = [v for v in variants if not v.is_sold]
    if not unsold:
        return VariantRepricing(
            mark_sold=True, remaining_variants=0,
            remaining_bundle_price=None,
            new_bundle_price=None, new_discount_percentage=None,
        )

    counted = [v for v in unsold if v.is_available and v.quantity > 0]
    individual_total = to_money(sum((Decimal(v.price) for v in counted), ZERO))

    bundle_price: Decimal | None = None
    discount: Decimal | None = None
    if bundle_type == BundleType.BUNDLE_WITH_DISCOUNT.value and discount_percent:
        if len(counted) >= MIN_DISCOUNTED_VARIANTS:
            discount = Decimal(discount_percent)
            bundle_price = to_money(individual_total * (1 - discount / 100))
        else:
            discount = ZERO
            bundle_price = individual_total
    elif bundle_type == BundleType.VARIANTS_ONLY.value:
        bundle_price = individual_total

    return VariantRepricing(
        mark_sold=False,
        remaining_variants=len(unsold),
        remaining_bundle_price=bundle_price,
        new_bundle_price=bundle_price if _changed(bundle_price, current_bundle_price) else None,
        new_discount_percentage=discount if _changed(discount, current_discount) else None,
    )
