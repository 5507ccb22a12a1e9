"""Order Service — card checkout (create-checkout), order fulfilment and refunds.

Invariants:
    - Card orders start pending; only the payment webhook marks them paid
    - The seller must have a payout account with payouts enabled before checkout
    - Only the seller ships; only the buyer confirms delivery
    - Delivering a wallet-paid order settles the seller's pending funds exactly once
    - A listing is sold at most once; a payment that arrives after it sold is refunded
    - Card refunds go back through the provider; wallet refunds credit the buyer and
      reverse the seller's share
"""

import logging
from decimal import Decimal
from typing import Literal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.checkout import check_purchasable, to_minor_units
from marketplace.core.domain_types import (
    ListingStatus, OrderStatus, PaymentMethod, RefundType, ZERO, to_money, utcnow,
)
from marketplace.core.errors import BusinessRuleError, ResourceNotFoundError
from marketplace.core.order_rules import (
    check_can_confirm_delivery, check_can_ship, check_order_party,
    check_order_transition, refundable_amount,
)
from marketplace.infrastructure.auth import CurrentUser
from marketplace.infrastructure.payment_gateway import PaymentGateway
from marketplace.models.listing import Listing
from marketplace.models.order import Order
from marketplace.models.profile import Profile
from marketplace.services.profile_service import ensure_profile
from marketplace.services.quote_service import quote_listing
from marketplace.services.wallet_service import refund_wallet_order, settle_wallet_sale

logger = logging.getLogger(__name__)

_GONE = (ListingStatus.SOLD.value, ListingStatus.REMOVED.value)


async def get_order(db: AsyncSession, order_id: UUID) -> Order:
    order = await db.get(Order, order_id)
    if order is None:
        raise ResourceNotFoundError("Order", str(order_id))
    return order


async def get_order_for_party(
    db: AsyncSession, user: CurrentUser, order_id: UUID,
) -> Order:
    order = await get_order(db, order_id)
    check_order_party(user.id, order.buyer_id, order.seller_id)
    return order


async def create_checkout(
    db: AsyncSession,
    gateway: PaymentGateway,
    user: CurrentUser,
    listing_id: UUID,
    shipping_address: dict | None = None,
) -> dict:
    listing = await db.get(Listing, listing_id)
    if listing is None:
        raise ResourceNotFoundError("Listing", str(listing_id))
    check_purchasable(listing.status, listing.seller_id, user.id)
    seller = await db.get(Profile, listing.seller_id)
    if seller is None or not seller.payout_account_id or not seller.payouts_enabled:
        raise BusinessRuleError(
            "Seller has not completed payment setup", "SELLER_NOT_ONBOARDED",
        )
    await ensure_profile(db, user)

    country = (shipping_address or {}).get("country")
    totals = await quote_listing(db, listing, user.id, country)
    order = Order(
        buyer_id=user.id,
        seller_id=listing.seller_id,
        listing_id=listing.id,
        status=OrderStatus.PENDING.value,
        payment_method=PaymentMethod.CARD.value,
        item_price=totals.item_price,
        shipping_cost=totals.shipping_cost,
        buyer_fee=totals.buyer_fee,
        seller_fee=totals.seller_fee,
        platform_fee=totals.platform_fee,
        total_amount=totals.total_amount,
        seller_amount=totals.seller_amount,
        currency=totals.currency,
        shipping_address=shipping_address,
    )
    db.add(order)
    await db.flush()

    intent = await gateway.create_payment_intent(
        amount=to_minor_units(totals.total_amount),
        currency=totals.currency.lower(),
        application_fee_amount=to_minor_units(totals.platform_fee),
        destination_account=seller.payout_account_id,
        metadata={
            "type": "order",
            "order_id": str(order.id),
            "listing_id": str(listing.id),
            "buyer_id": str(user.id),
            "seller_id": str(listing.seller_id),
        },
    )
    order.payment_intent_id = intent.id
    await db.commit()
    logger.info(
        f"Checkout started for listing {listing.id}",
        extra={
            "user_id": str(user.id), "order_id": str(order.id),
            "listing_id": str(listing.id), "amount": str(totals.total_amount),
        },
    )
    return {
        "client_secret": intent.client_secret,
        "order_id": order.id,
        "payment_intent_id": intent.id,
        "total_amount": totals.total_amount,
        "currency": totals.currency,
    }


async def _order_for_intent(
    db: AsyncSession, payment_intent_id: str, order_id: str | None,
) -> Order | None:
    if order_id:
        try:
            order = await db.get(Order, UUID(order_id))
        except ValueError:
            order = None
        if order is not None:
            return order
    return (await db.execute(
        select(Order).where(Order.payment_intent_id == payment_intent_id),
    )).scalar_one_or_none()


async def mark_order_paid(
    db: AsyncSession,
    gateway: PaymentGateway,
    payment_intent_id: str,
    order_id: str | None = None,
) -> bool:
    """Webhook: payment succeeded. Idempotent; False when nothing changed.

    A listing that sold some other way while this payment was in flight is
    not sold twice: the order is marked paid and refunded in full.
    """
    order = await _order_for_intent(db, payment_intent_id, order_id)
    if order is None:
        logger.warning(f"Payment succeeded for unknown order (intent {payment_intent_id})")
        return False
    if order.status != OrderStatus.PENDING.value:
        return False
    check_order_transition(order.status, OrderStatus.PAID)
    order.status = OrderStatus.PAID.value
    order.paid_at = utcnow()
    listing = (await db.execute(
        select(Listing).where(Listing.id == order.listing_id).with_for_update(),
    )).scalar_one_or_none()
    if listing is None or listing.status in _GONE:
        logger.warning(
            f"Listing for order {order.id} is no longer available; refunding",
            extra={"order_id": str(order.id), "listing_id": str(order.listing_id)},
        )
        await apply_refund(
            db, gateway, order, RefundType.FULL, reason="Listing no longer available",
        )
        await db.commit()
        return True
    listing.status = ListingStatus.SOLD.value
    await db.commit()
    logger.info(f"Order {order.id} paid", extra={"order_id": str(order.id)})
    return True


async def cancel_unpaid_order(
    db: AsyncSession, payment_intent_id: str, order_id: str | None = None,
) -> bool:
    order = await _order_for_intent(db, payment_intent_id, order_id)
    if order is None or order.status != OrderStatus.PENDING.value:
        return False
    order.status = OrderStatus.CANCELLED.value
    await db.commit()
    logger.info(f"Order {order.id} cancelled after failed payment", extra={"order_id": str(order.id)})
    return True


async def list_orders(
    db: AsyncSession,
    user: CurrentUser,
    role: Literal["buyer", "seller"] | None = None,
    status: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Order]:
    query = select(Order)
    if role == "buyer":
        query = query.where(Order.buyer_id == user.id)
    elif role == "seller":
        query = query.where(Order.seller_id == user.id)
    else:
        query = query.where((Order.buyer_id == user.id) | (Order.seller_id == user.id))
    if status:
        query = query.where(Order.status == status)
    query = query.order_by(Order.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def ship_order(
    db: AsyncSession, user: CurrentUser, order_id: UUID, tracking_number: str | None = None,
) -> Order:
    order = await get_order(db, order_id)
    check_can_ship(user.id, order.seller_id, order.status)
    order.status = OrderStatus.SHIPPED.value
    order.shipped_at = utcnow()
    if tracking_number:
        order.tracking_number = tracking_number.strip()
    await db.commit()
    logger.info(
        f"Order {order.id} shipped",
        extra={"user_id": str(user.id), "order_id": str(order.id)},
    )
    return order


async def confirm_delivery(
    db: AsyncSession, user: CurrentUser, order_id: UUID,
) -> Order:
    order = await get_order(db, order_id)
    check_can_confirm_delivery(user.id, order.buyer_id, order.status)
    order.status = OrderStatus.DELIVERED.value
    order.delivered_at = utcnow()
    await settle_wallet_sale(db, order)
    await db.commit()
    logger.info(
        f"Order {order.id} delivered",
        extra={"user_id": str(user.id), "order_id": str(order.id)},
    )
    return order


# ─── Refunds ────────────────────────────────────────────────────

async def apply_refund(
    db: AsyncSession,
    gateway: PaymentGateway,
    order: Order,
    refund_type: RefundType,
    amount: Decimal | None = None,
    reason: str | None = None,
) -> dict:
    """Refund a paid order by card or back to the wallet. Caller commits.

    Order changes are flushed before the provider is called, so a provider
    failure rolls them back with the request.
    """
    refund_amount = refundable_amount(
        order.status, order.total_amount, order.refunded_amount or ZERO, refund_type, amount,
    )
    card = order.payment_method == PaymentMethod.CARD.value
    if card and not order.payment_intent_id:
        raise BusinessRuleError("No payment found for this order", "NO_PAYMENT")
    if not card:
        await refund_wallet_order(db, order, refund_amount)

    order.refunded_amount = to_money((order.refunded_amount or ZERO) + refund_amount)
    if order.refunded_amount >= to_money(order.total_amount):
        order.status = OrderStatus.REFUNDED.value
        order.refunded_at = utcnow()
    await db.flush()

    refund_id = None
    if card:
        refund = await gateway.create_refund(
            payment_intent_id=order.payment_intent_id,
            amount=to_minor_units(refund_amount),
            metadata={
                "order_id": str(order.id),
                "refund_type": refund_type.value,
                "reason": reason or "",
            },
        )
        refund_id = refund.id
    logger.info(
        f"Refunded {refund_amount} on order {order.id} ({order.payment_method})",
        extra={"order_id": str(order.id), "amount": str(refund_amount)},
    )
    return {
        "order_id": order.id,
        "refund_id": refund_id,
        "amount": refund_amount,
        "refunded_amount": order.refunded_amount,
        "status": order.status,
    }


async def refund_order(
    db: AsyncSession,
    gateway: PaymentGateway,
    admin: CurrentUser,
    order_id: UUID,
    refund_type: RefundType,
    amount: Decimal | None,
    reason: str,
) -> dict:
    order = (await db.execute(
        select(Order).where(Order.id == order_id).with_for_update(),
    )).scalar_one_or_none()
    if order is None:
        raise ResourceNotFoundError("Order", str(order_id))
    result = await apply_refund(db, gateway, order, refund_type, amount, reason)
    await db.commit()
    logger.info(
        f"Admin {admin.id} refunded order {order.id}: {reason}",
        extra={"user_id": str(admin.id), "order_id": str(order.id)},
    )
    return result
