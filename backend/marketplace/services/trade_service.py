"""Trade Service — trade offer lifecycle: create, respond, counter, complete, expire.

Invariants:
    - Every status change goes through core.trade_rules.check_transition
    - Accepting sells the target listing and every traded listing in the same commit
    - Cash escrow is held on accept and released once, on mark_received
    - A counter-offer is a new pending row; the original becomes "countered"
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.domain_types import (
    ListingStatus, TradeStatus, to_money, utcnow,
)
from marketplace.core.errors import (
    BusinessRuleError, PermissionDeniedError, ResourceNotFoundError,
)
from marketplace.core.trade_rules import (
    ListingSnapshot, check_offer_contents, check_recipient, check_target_listing,
    check_transition, is_expired, is_participant, offer_expiry,
    resolve_complete_action,
)
from marketplace.infrastructure.auth import CurrentUser
from marketplace.models.listing import Listing
from marketplace.models.trade_offer import TradeOffer
from marketplace.services.profile_service import ensure_profile
from marketplace.services.wallet_service import hold_trade_escrow, release_trade_escrow

logger = logging.getLogger(__name__)


def _snapshot(listing: Listing) -> ListingSnapshot:
    return ListingSnapshot(
        id=listing.id, seller_id=listing.seller_id,
        status=listing.status, title=listing.title,
    )


async def _load_offered(
    db: AsyncSession, item_ids: list[UUID],
) -> dict[UUID, ListingSnapshot]:
    if not item_ids:
        return {}
    result = await db.execute(select(Listing).where(Listing.id.in_(item_ids)))
    return {lst.id: _snapshot(lst) for lst in result.scalars().all()}


def _trade_items(item_ids: list[UUID], offered: dict[UUID, ListingSnapshot]) -> list[dict]:
    return [{"listing_id": str(i), "title": offered[i].title} for i in item_ids]


def _item_ids(offer: TradeOffer) -> list[UUID]:
    return [UUID(str(item["listing_id"])) for item in offer.trade_items or []]


async def get_offer(db: AsyncSession, offer_id: UUID) -> TradeOffer:
    offer = await db.get(TradeOffer, offer_id)
    if offer is None:
        raise ResourceNotFoundError("Trade offer", str(offer_id))
    return offer


async def get_offer_for_participant(
    db: AsyncSession, user: CurrentUser, offer_id: UUID,
) -> TradeOffer:
    offer = await get_offer(db, offer_id)
    if not is_participant(user.id, offer.buyer_id, offer.seller_id):
        raise PermissionDeniedError("Not authorized to view this trade")
    return offer


async def create_offer(
    db: AsyncSession,
    user: CurrentUser,
    target_listing_id: UUID,
    item_ids: list[UUID],
    cash_amount: Decimal,
    message: str | None = None,
    now: datetime | None = None,
) -> TradeOffer:
    now = now or utcnow()
    target = await db.get(Listing, target_listing_id)
    if target is None:
        raise ResourceNotFoundError("Listing", str(target_listing_id))
    check_target_listing(_snapshot(target), user.id)

    offered = await _load_offered(db, item_ids)
    check_offer_contents(item_ids, offered, user.id, cash_amount, target_listing_id)
    await ensure_profile(db, user)

    offer = TradeOffer(
        buyer_id=user.id,
        seller_id=target.seller_id,
        proposed_by=user.id,
        target_listing_id=target.id,
        cash_amount=to_money(cash_amount),
        trade_items=_trade_items(item_ids, offered),
        message=(message or "").strip() or None,
        status=TradeStatus.PENDING.value,
        expires_at=offer_expiry(now),
        created_at=now,
    )
    db.add(offer)
    await db.commit()
    logger.info(
        f"Created trade offer {offer.id} for listing {target.id}",
        extra={"user_id": str(user.id), "offer_id": str(offer.id), "listing_id": str(target.id)},
    )
    return offer


async def _expire_if_stale(db: AsyncSession, offer: TradeOffer, now: datetime) -> None:
    """Pending offers past expiry are marked expired and the action fails."""
    if offer.status == TradeStatus.PENDING.value and is_expired(offer.expires_at, now):
        offer.status = TradeStatus.EXPIRED.value
        await db.commit()
        logger.info(f"Trade offer {offer.id} expired", extra={"offer_id": str(offer.id)})
        raise BusinessRuleError("Trade offer has expired", "OFFER_EXPIRED")


async def accept_offer(
    db: AsyncSession, user: CurrentUser, offer_id: UUID, now: datetime | None = None,
) -> TradeOffer:
    now = now or utcnow()
    offer = await get_offer(db, offer_id)
    check_recipient(user.id, offer.buyer_id, offer.seller_id, offer.proposed_by, "accept")
    check_transition(offer.status, TradeStatus.ACCEPTED)
    await _expire_if_stale(db, offer, now)

    listing_ids = [offer.target_listing_id, *_item_ids(offer)]
    result = await db.execute(
        select(Listing).where(Listing.id.in_(listing_ids)).with_for_update(),
    )
    listings = {lst.id: lst for lst in result.scalars().all()}
    for listing_id in listing_ids:
        listing = listings.get(listing_id)
        if listing is None or listing.status != ListingStatus.ACTIVE.value:
            raise BusinessRuleError(
                "A listing in this trade is no longer available", "LISTING_NOT_ACTIVE",
            )

    if offer.cash_amount and to_money(offer.cash_amount) > 0:
        offer.escrow_amount = await hold_trade_escrow(db, offer)
        offer.escrow_enabled = True

    for listing in listings.values():
        listing.status = ListingStatus.SOLD.value
    offer.status = TradeStatus.ACCEPTED.value
    offer.responded_at = now
    await db.commit()
    logger.info(
        f"Accepted trade offer {offer.id}",
        extra={"user_id": str(user.id), "offer_id": str(offer.id)},
    )
    return offer


async def reject_offer(
    db: AsyncSession, user: CurrentUser, offer_id: UUID, now: datetime | None = None,
) -> TradeOffer:
    now = now or utcnow()
    offer = await get_offer(db, offer_id)
    check_recipient(user.id, offer.buyer_id, offer.seller_id, offer.proposed_by, "reject")
    check_transition(offer.status, TradeStatus.REJECTED)
    offer.status = TradeStatus.REJECTED.value
    offer.responded_at = now
    await db.commit()
    logger.info(
        f"Rejected trade offer {offer.id}",
        extra={"user_id": str(user.id), "offer_id": str(offer.id)},
    )
    return offer


async def cancel_offer(
    db: AsyncSession, user: CurrentUser, offer_id: UUID,
) -> TradeOffer:
    offer = await get_offer(db, offer_id)
    if user.id != offer.proposed_by:
        raise PermissionDeniedError("Only the proposer can cancel this offer")
    check_transition(offer.status, TradeStatus.CANCELLED)
    offer.status = TradeStatus.CANCELLED.value
    await db.commit()
    logger.info(
        f"Cancelled trade offer {offer.id}",
        extra={"user_id": str(user.id), "offer_id": str(offer.id)},
    )
    return offer


async def counter_offer(
    db: AsyncSession,
    user: CurrentUser,
    offer_id: UUID,
    item_ids: list[UUID],
    cash_amount: Decimal,
    message: str | None = None,
    now: datetime | None = None,
) -> TradeOffer:
    """Close the original as countered and open a new pending offer from the recipient."""
    now = now or utcnow()
    original = await get_offer(db, offer_id)
    check_recipient(
        user.id, original.buyer_id, original.seller_id, original.proposed_by, "counter",
    )
    check_transition(original.status, TradeStatus.COUNTERED)
    await _expire_if_stale(db, original, now)

    target = await db.get(Listing, original.target_listing_id)
    if target is None or target.status != ListingStatus.ACTIVE.value:
        raise BusinessRuleError("Listing not active", "LISTING_NOT_ACTIVE")
    offered = await _load_offered(db, item_ids)
    check_offer_contents(
        item_ids, offered, original.buyer_id, cash_amount, original.target_listing_id,
    )

    original.status = TradeStatus.COUNTERED.value
    original.responded_at = now
    counter = TradeOffer(
        buyer_id=original.buyer_id,
        seller_id=original.seller_id,
        proposed_by=user.id,
        target_listing_id=original.target_listing_id,
        parent_offer_id=original.id,
        cash_amount=to_money(cash_amount),
        trade_items=_trade_items(item_ids, offered),
        message=(message or "").strip() or None,
        status=TradeStatus.PENDING.value,
        expires_at=offer_expiry(now),
        created_at=now,
    )
    db.add(counter)
    await db.commit()
    logger.info(
        f"Countered trade offer {original.id} with {counter.id}",
        extra={"user_id": str(user.id), "offer_id": str(counter.id)},
    )
    return counter


async def complete_offer(
    db: AsyncSession,
    user: CurrentUser,
    offer_id: UUID,
    action: str,
    now: datetime | None = None,
) -> TradeOffer:
    now = now or utcnow()
    offer = await get_offer(db, offer_id)
    target = resolve_complete_action(
        action, offer.status, user.id, offer.buyer_id, offer.seller_id,
    )
    check_transition(offer.status, target)
    offer.status = target.value

    if target == TradeStatus.COMPLETED and offer.escrow_enabled and not offer.escrow_released:
        await release_trade_escrow(db, offer)
        offer.escrow_released = True
        offer.escrow_released_at = now

    await db.commit()
    logger.info(
        f"Trade offer {offer.id} -> {offer.status}",
        extra={"user_id": str(user.id), "offer_id": str(offer.id)},
    )
    return offer


async def expire_stale_offers(db: AsyncSession, now: datetime | None = None) -> int:
    """Mark every pending offer past expires_at as expired. Returns the count."""
    now = now or utcnow()
    result = await db.execute(
        update(TradeOffer)
        .where(
            TradeOffer.status == TradeStatus.PENDING.value,
            TradeOffer.expires_at <= now,
        )
        .values(status=TradeStatus.EXPIRED.value)
        .execution_options(synchronize_session=False),
    )
    await db.commit()
    expired = result.rowcount or 0
    logger.info(f"Expired {expired} stale trade offers")
    return expired


async def list_offers(
    db: AsyncSession,
    user: CurrentUser,
    role: Literal["sent", "received"] | None = None,
    status: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[TradeOffer]:
    """Sent = proposed by the caller; received = caller is the other party."""
    participant = or_(TradeOffer.buyer_id == user.id, TradeOffer.seller_id == user.id)
    query = select(TradeOffer).where(participant)
    if role == "sent":
        query = query.where(TradeOffer.proposed_by == user.id)
    elif role == "received":
        query = query.where(TradeOffer.proposed_by != user.id)
    if status:
        query = query.where(TradeOffer.status == status)
    query = query.order_by(TradeOffer.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())
