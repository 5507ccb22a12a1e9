"""Trade Offer Rules — state machine, party roles and offer validation.

Invariants:
    - Transitions are explicit: TRADE_TRANSITIONS is the only source of allowed moves
    - The recipient of an offer is the party that did NOT propose it
    - Only the recipient accepts/rejects/counters; only the proposer cancels
    - A pending offer past expires_at cannot be accepted (it is expired instead)
    - An offer carries at least one item or cash > 0; never more than MAX_TRADE_ITEMS items

Design Decisions:
    - check_* functions raise domain errors; the service owns the DB writes
    - Offers expire OFFER_TTL after creation (counter-offers get a fresh TTL)
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from marketplace.core.domain_types import ListingStatus, TradeStatus, as_utc
from marketplace.core.errors import (
    InvalidRequestError, InvalidStateTransitionError, PermissionDeniedError,
    BusinessRuleError,
)

OFFER_TTL = timedelta(days=7)
MAX_TRADE_ITEMS = 10

TRADE_TRANSITIONS: dict[TradeStatus, frozenset[TradeStatus]] = {
    TradeStatus.PENDING: frozenset({
        TradeStatus.ACCEPTED, TradeStatus.REJECTED, TradeStatus.COUNTERED,
        TradeStatus.CANCELLED, TradeStatus.EXPIRED,
    }),
    TradeStatus.ACCEPTED: frozenset({TradeStatus.SHIPPED}),
    TradeStatus.SHIPPED: frozenset({TradeStatus.COMPLETED}),
}

COMPLETE_ACTIONS = ("mark_shipped", "mark_received")


@dataclass(frozen=True)
class ListingSnapshot:
    """The slice of a listing the trade rules need."""
    id: UUID
    seller_id: UUID
    status: str
    title: str = ""


def can_transition(current: str, target: TradeStatus) -> bool:
    return target in TRADE_TRANSITIONS.get(TradeStatus(current), frozenset())


def check_transition(current: str, target: TradeStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStateTransitionError("trade offer", current, target.value)


def recipient_of(buyer_id: UUID, seller_id: UUID, proposed_by: UUID) -> UUID:
    return seller_id if proposed_by == buyer_id else buyer_id


def is_participant(user_id: UUID, buyer_id: UUID, seller_id: UUID) -> bool:
    return user_id in (buyer_id, seller_id)


def check_recipient(
    user_id: UUID, buyer_id: UUID, seller_id: UUID, proposed_by: UUID, action: str,
) -> None:
    if user_id != recipient_of(buyer_id, seller_id, proposed_by):
        raise PermissionDeniedError(f"Not authorized to {action} this offer")


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    return expires_at is not None and as_utc(expires_at) <= as_utc(now)


def offer_expiry(now: datetime) -> datetime:
    return as_utc(now) + OFFER_TTL


def check_target_listing(target: ListingSnapshot, user_id: UUID) -> None:
    """Target must be active and belong to someone else."""
    if target.status != ListingStatus.ACTIVE.value:
        raise BusinessRuleError("Listing not active", "LISTING_NOT_ACTIVE")
    if target.seller_id == user_id:
        raise BusinessRuleError("Cannot trade with yourself", "SELF_TRADE")


def check_offer_contents(
    item_ids: list[UUID],
    offered: dict[UUID, ListingSnapshot],
    owner_id: UUID,
    cash_amount: Decimal,
    target_listing_id: UUID,
) -> None:
    """Validate offered items (owned by owner_id, active, unique) and cash."""
    if cash_amount < 0:
        raise InvalidRequestError("cash_amount must not be negative", field="cash_amount")
    if not item_ids and cash_amount <= 0:
        raise InvalidRequestError(
            "Please add at least one item or cash to your offer", field="trade_items",
        )
    if len(item_ids) > MAX_TRADE_ITEMS:
        raise InvalidRequestError(
            f"An offer may include at most {MAX_TRADE_ITEMS} items", field="trade_items",
        )
    if len(set(item_ids)) != len(item_ids):
        raise InvalidRequestError("Duplicate items in offer", field="trade_items")
    for item_id in item_ids:
        if item_id == target_listing_id:
            raise InvalidRequestError(
                "The target listing cannot be offered in trade", field="trade_items",
            )
        listing = offered.get(item_id)
        if listing is None or listing.seller_id != owner_id:
            raise InvalidRequestError(
                f"Listing '{item_id}' is not available for this trade", field="trade_items",
            )
        if listing.status != ListingStatus.ACTIVE.value:
            raise InvalidRequestError(
                f"Listing '{item_id}' is not active", field="trade_items",
            )


def resolve_complete_action(
    action: str, status: str, user_id: UUID, buyer_id: UUID, seller_id: UUID,
) -> TradeStatus:
    """Map a completion action to the target status, enforcing who may do it."""
    if action not in COMPLETE_ACTIONS:
        raise InvalidRequestError(f"Unknown action '{action}'", field="action")
    if not is_participant(user_id, buyer_id, seller_id):
        raise PermissionDeniedError("Not authorized for this trade")
    if action == "mark_shipped":
        check_transition(status, TradeStatus.SHIPPED)
        return TradeStatus.SHIPPED
    if status != TradeStatus.SHIPPED.value:
        raise BusinessRuleError(
            "Seller must mark item as shipped before buyer can confirm receipt",
            "NOT_SHIPPED",
        )
    if user_id != buyer_id:
        raise PermissionDeniedError("Only the buyer can mark item as received")
    return TradeStatus.COMPLETED
