"""TradeOffer ORM — a proposed item/cash exchange for a target listing.

Invariants:
    - buyer_id is the party offering items/cash; seller_id owns target_listing_id
    - proposed_by is buyer_id or seller_id; the other party is the recipient
    - parent_offer_id set only on counter-offers
    - escrow_* fields used only when cash_amount > 0 and the offer was accepted

Design Decisions:
    - trade_items as JSON list of {listing_id, title}: snapshot at offer time
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, ForeignKey, JSON, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from marketplace.db.base import Base


class TradeOffer(Base):
    __tablename__ = "trade_offers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    buyer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True,
    )
    seller_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True,
    )
    proposed_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    target_listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id"), nullable=False,
    )
    parent_offer_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("trade_offers.id"), nullable=True,
    )
    cash_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=0,
    )
    trade_items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending", index=True,
    )

    escrow_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    escrow_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=0,
    )
    escrow_released: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    escrow_released_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
