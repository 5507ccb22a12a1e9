"""Order Lifecycle — allowed moves and who may make them."""

import uuid
from decimal import Decimal

import pytest

from marketplace.core.domain_types import OrderStatus, RefundType
from marketplace.core.errors import (
    BusinessRuleError, InvalidRequestError, InvalidStateTransitionError,
    PermissionDeniedError,
)
from marketplace.core.order_rules import (
    check_can_confirm_delivery, check_can_ship, check_order_party, check_order_transition,
    refundable_amount, seller_share,
)

BUYER = uuid.uuid4()
SELLER = uuid.uuid4()


def test_pending_order_can_be_paid_or_cancelled():
    check_order_transition("pending", OrderStatus.PAID)
    check_order_transition("pending", OrderStatus.CANCELLED)


def test_cancelled_order_is_final():
    with pytest.raises(InvalidStateTransitionError):
        check_order_transition("cancelled", OrderStatus.PAID)


def test_only_seller_ships_paid_orders():
    check_can_ship(SELLER, SELLER, "paid")
    with pytest.raises(PermissionDeniedError):
        check_can_ship(BUYER, SELLER, "paid")
    with pytest.raises(InvalidStateTransitionError):
        check_can_ship(SELLER, SELLER, "pending")


def test_only_buyer_confirms_delivery_of_shipped_orders():
    check_can_confirm_delivery(BUYER, BUYER, "shipped")
    with pytest.raises(PermissionDeniedError):
        check_can_confirm_delivery(SELLER, BUYER, "shipped")
    with pytest.raises(InvalidStateTransitionError):
        check_can_confirm_delivery(BUYER, BUYER, "paid")


def test_outsiders_cannot_view_orders():
    check_order_party(BUYER, BUYER, SELLER)
    with pytest.raises(PermissionDeniedError):
        check_order_party(uuid.uuid4(), BUYER, SELLER)


# --- Refunds ------------------------------------------------------------------

TOTAL = Decimal("53.70")


def test_full_refund_takes_the_remainder():
    assert refundable_amount("paid", TOTAL, Decimal("0"), RefundType.FULL) == TOTAL
    assert refundable_amount("delivered", TOTAL, Decimal("10.74"), RefundType.FULL) == Decimal("42.96")


def test_partial_refund_bounded_by_remainder():
    assert refundable_amount(
        "shipped", TOTAL, Decimal("0"), RefundType.PARTIAL, Decimal("10.744"),
    ) == Decimal("10.74")
    with pytest.raises(InvalidRequestError) as exc:
        refundable_amount("paid", TOTAL, Decimal("50"), RefundType.PARTIAL, Decimal("3.71"))
    assert exc.value.field == "amount"
    with pytest.raises(InvalidRequestError):
        refundable_amount("paid", TOTAL, Decimal("0"), RefundType.PARTIAL, None)


def test_unpaid_and_fully_refunded_orders_not_refundable():
    with pytest.raises(InvalidStateTransitionError):
        refundable_amount("pending", TOTAL, Decimal("0"), RefundType.FULL)
    with pytest.raises(InvalidStateTransitionError):
        refundable_amount("refunded", TOTAL, TOTAL, RefundType.FULL)
    with pytest.raises(BusinessRuleError) as exc:
        refundable_amount("paid", TOTAL, TOTAL, RefundType.FULL)
    assert exc.value.code == "ALREADY_REFUNDED"


def test_seller_share_is_proportional():
    credit = Decimal("52.30")
    assert seller_share(credit, TOTAL, Decimal("10.74")) == Decimal("10.46")
    assert seller_share(credit, TOTAL, TOTAL) == credit
    assert seller_share(credit, Decimal("0"), Decimal("5")) == Decimal("0")
