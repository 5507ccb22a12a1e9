"""Order Lifecycle — allowed status moves and who may make them.

Invariants:
    - pending -> paid | cancelled; paid -> shipped | refunded;
      shipped -> delivered | refunded; delivered -> refunded
    - Only the seller ships; only the buyer confirms delivery
    - Refunds never exceed total_amount in sum; a paid, shipped or delivered order
      becomes refunded once nothing refundable remains
    - The seller gives back the same fraction of their credit as the buyer gets back
"""

from decimal import Decimal
from uuid import UUID

from marketplace.core.domain_types import OrderStatus, RefundType, ZERO, to_money
from marketplace.core.errors import (
    BusinessRuleError, InvalidRequestError, InvalidStateTransitionError,
    PermissionDeniedError,
)

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.REFUNDED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.REFUNDED}),
    OrderStatus.DELIVERED: frozenset({OrderStatus.REFUNDED}),
}


def check_order_transition(current: str, target: OrderStatus) -> None:
    if target not in ORDER_TRANSITIONS.get(OrderStatus(current), frozenset()):
        raise InvalidStateTransitionError("order", current, target.value)


def check_order_party(user_id: UUID, buyer_id: UUID, seller_id: UUID) -> None:
    if user_id not in (buyer_id, seller_id):
        raise PermissionDeniedError("Not authorized for this order")


def check_can_ship(user_id: UUID, seller_id: UUID, status: str) -> None:
    if user_id != seller_id:
        raise PermissionDeniedError("Only the seller can mark an order as shipped")
    check_order_transition(status, OrderStatus.SHIPPED)


def check_can_confirm_delivery(user_id: UUID, buyer_id: UUID, status: str) -> None:
    if user_id != buyer_id:
        raise PermissionDeniedError("Only the buyer can confirm delivery")
    check_order_transition(status, OrderStatus.DELIVERED)


# ─── Refunds ────────────────────────────────────────────────────

def refundable_amount(
    status: str,
    total_amount: Decimal,
    refunded_amount: Decimal,
    refund_type: RefundType,
    requested: Decimal | None = None,
) -> Decimal:
    """Amount to refund now. Full refunds take whatever is still unrefunded."""
    check_order_transition(status, OrderStatus.REFUNDED)
    remaining = to_money(total_amount) - to_money(refunded_amount)
    if remaining <= 0:
        raise BusinessRuleError("Order has already been fully refunded", "ALREADY_REFUNDED")
    if refund_type == RefundType.FULL:
        return remaining
    if requested is None or to_money(requested) <= 0:
        raise InvalidRequestError(
            "A partial refund needs a positive amount", field="amount",
        )
    if to_money(requested) > remaining:
        raise InvalidRequestError(
            f"Refund exceeds the refundable amount of {remaining}", field="amount",
        )
    return to_money(requested)


def seller_share(seller_credit: Decimal, total_amount: Decimal, refunded: Decimal) -> Decimal:
    """Seller's part of `refunded`, proportional to what the seller was owed."""
    total = to_money(total_amount)
    if total <= 0:
        return ZERO
    return min(to_money(seller_credit), to_money(seller_credit * to_money(refunded) / total))
