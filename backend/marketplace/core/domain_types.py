"""Domain Types — identity types, money helpers and lifecycle enums.

Invariants:
    - Money is Decimal, quantized to 2 places with ROUND_HALF_UP (never float)
    - All lifecycle states encoded as str Enums — values match DB `status` columns
    - Timestamps compared in UTC; naive datetimes are treated as UTC

Design Decisions:
    - NewType for ids: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
ListingId = NewType("ListingId", UUID)
OrderId = NewType("OrderId", UUID)
OfferId = NewType("OfferId", UUID)
WalletId = NewType("WalletId", UUID)


# ─── Money ───────────────────────────────────────────────────────

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce to a 2-place Decimal. None becomes 0.00."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() keeps 0.1 as 0.1 instead of its binary expansion
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─── Enums ───────────────────────────────────────────────────────

class Currency(str, Enum):
    GBP = "GBP"
    USD = "USD"
    EUR = "EUR"


class MembershipTier(str, Enum):
    FREE = "free"
    PRO = "pro"


class ListingStatus(str, Enum):
    """Listing lifecycle — only ACTIVE listings can be bought or traded for."""
    DRAFT = "draft"
    ACTIVE = "active"
    RESERVED = "reserved"
    SOLD = "sold"
    REMOVED = "removed"


class BundleType(str, Enum):
    """Variant-bundle pricing mode on a listing."""
    BUNDLE_WITH_DISCOUNT = "bundle_with_discount"
    VARIANTS_ONLY = "variants_only"


class TradeStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTERED = "countered"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    SHIPPED = "shipped"
    COMPLETED = "completed"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class RefundType(str, Enum):
    FULL = "full"
    PARTIAL = "partial"


class PaymentMethod(str, Enum):
    CARD = "card"
    WALLET = "wallet"


class DisputeType(str, Enum):
    ITEM_NOT_RECEIVED = "item_not_received"
    ITEM_NOT_AS_DESCRIBED = "item_not_as_described"
    DAMAGED = "damaged"
    COUNTERFEIT = "counterfeit"
    MISSING_PARTS = "missing_parts"
    OTHER = "other"


class DisputeStatus(str, Enum):
    OPEN = "open"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"
    CLOSED = "closed"


class DisputeResolution(str, Enum):
    REFUND_BUYER = "refund_buyer"
    RELEASE_TO_SELLER = "release_to_seller"
    PARTIAL_REFUND = "partial_refund"


class DisputePriority(str, Enum):
    """SLA-derived priority, worst last."""
    LOW = "low_priority"
    MEDIUM = "medium_priority"
    HIGH = "high_priority"
    CRITICAL = "critical"


class WalletTransactionType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    PURCHASE = "purchase"
    SALE_PENDING = "sale_pending"
    SALE_SETTLEMENT = "sale_settlement"
    TRADE_ESCROW = "trade_escrow"
    ESCROW_RELEASE = "escrow_release"
    REFUND = "refund"
    SALE_REVERSAL = "sale_reversal"
    TRANSFER_OUT = "transfer_out"
    TRANSFER_IN = "transfer_in"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
