"""Trade Offer Rules — state machine, roles, expiry and offer contents."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from marketplace.core.domain_types import TradeStatus
from marketplace.core.errors import (
    BusinessRuleError, InvalidRequestError, InvalidStateTransitionError,
    PermissionDeniedError,
)
from marketplace.core.trade_rules import (
    ListingSnapshot, OFFER_TTL, can_transition, check_offer_contents,
    check_recipient, check_target_listing, is_expired, offer_expiry,
    recipient_of, resolve_complete_action,
)

BUYER = uuid.uuid4()
SELLER = uuid.uuid4()
TARGET = uuid.uuid4()


def _listing(owner=BUYER, status="active") -> ListingSnapshot:
    return ListingSnapshot(id=uuid.uuid4(), seller_id=owner, status=status, title="Pikachu")


# --- State machine ------------------------------------------------------------

def test_pending_can_move_to_every_response():
    for target in (
        TradeStatus.ACCEPTED, TradeStatus.REJECTED, TradeStatus.COUNTERED,
        TradeStatus.CANCELLED, TradeStatus.EXPIRED,
    ):
        assert can_transition("pending", target)


def test_terminal_states_cannot_move():
    assert not can_transition("rejected", TradeStatus.ACCEPTED)
    assert not can_transition("completed", TradeStatus.SHIPPED)
    assert not can_transition("accepted", TradeStatus.COMPLETED)


# --- Roles --------------------------------------------------------------------

def test_recipient_is_the_non_proposer():
    assert recipient_of(BUYER, SELLER, proposed_by=BUYER) == SELLER
    assert recipient_of(BUYER, SELLER, proposed_by=SELLER) == BUYER


def test_proposer_cannot_accept_own_offer():
    with pytest.raises(PermissionDeniedError):
        check_recipient(BUYER, BUYER, SELLER, BUYER, "accept")


# --- Expiry -------------------------------------------------------------------

def test_offer_expires_after_ttl():
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    expires = offer_expiry(now)
    assert expires - now == OFFER_TTL
    assert not is_expired(expires, now + OFFER_TTL - timedelta(seconds=1))
    assert is_expired(expires, now + OFFER_TTL)


def test_naive_expiry_treated_as_utc():
    now = datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert is_expired(datetime(2026, 2, 28), now)


# --- Target and contents ------------------------------------------------------

def test_cannot_trade_for_own_listing():
    with pytest.raises(BusinessRuleError) as exc:
        check_target_listing(_listing(owner=SELLER), SELLER)
    assert exc.value.code == "SELF_TRADE"


def test_target_must_be_active():
    with pytest.raises(BusinessRuleError) as exc:
        check_target_listing(_listing(owner=SELLER, status="sold"), BUYER)
    assert exc.value.code == "LISTING_NOT_ACTIVE"


def test_empty_offer_rejected():
    with pytest.raises(InvalidRequestError):
        check_offer_contents([], {}, BUYER, Decimal("0"), TARGET)


def test_cash_only_offer_allowed():
    check_offer_contents([], {}, BUYER, Decimal("5"), TARGET)


def test_items_must_belong_to_offerer():
    item = _listing(owner=SELLER)
    with pytest.raises(InvalidRequestError):
        check_offer_contents([item.id], {item.id: item}, BUYER, Decimal("0"), TARGET)


def test_duplicate_and_inactive_items_rejected():
    item = _listing()
    with pytest.raises(InvalidRequestError):
        check_offer_contents([item.id, item.id], {item.id: item}, BUYER, Decimal("0"), TARGET)
    sold = _listing(status="sold")
    with pytest.raises(InvalidRequestError):
        check_offer_contents([sold.id], {sold.id: sold}, BUYER, Decimal("0"), TARGET)


def test_target_cannot_be_offered_back():
    with pytest.raises(InvalidRequestError):
        check_offer_contents([TARGET], {}, BUYER, Decimal("0"), TARGET)


# --- Completion ---------------------------------------------------------------

def test_either_party_marks_shipped():
    assert resolve_complete_action("mark_shipped", "accepted", SELLER, BUYER, SELLER) == TradeStatus.SHIPPED
    assert resolve_complete_action("mark_shipped", "accepted", BUYER, BUYER, SELLER) == TradeStatus.SHIPPED


def test_receipt_requires_shipped_status():
    with pytest.raises(BusinessRuleError) as exc:
        resolve_complete_action("mark_received", "accepted", BUYER, BUYER, SELLER)
    assert exc.value.code == "NOT_SHIPPED"


def test_only_buyer_confirms_receipt():
    with pytest.raises(PermissionDeniedError):
        resolve_complete_action("mark_received", "shipped", SELLER, BUYER, SELLER)
    assert resolve_complete_action("mark_received", "shipped", BUYER, BUYER, SELLER) == TradeStatus.COMPLETED


def test_shipping_a_pending_offer_is_invalid():
    with pytest.raises(InvalidStateTransitionError):
        resolve_complete_action("mark_shipped", "pending", BUYER, BUYER, SELLER)


def test_outsider_cannot_complete():
    with pytest.raises(PermissionDeniedError):
        resolve_complete_action("mark_shipped", "accepted", uuid.uuid4(), BUYER, SELLER)
