"""Listing ORM — a sellable card, its images and optional variants.

Invariants:
    - seller_price > 0, stored as Numeric(12, 2)
    - status: draft | active | reserved | sold | removed (core.domain_types.ListingStatus)
    - Images ordered by display_order; variants only meaningful when has_variants
    - bundle_type null unless the listing is a variant bundle

Design Decisions:
    - Images and variants cascade with the listing: they have no life of their own
    - remaining_bundle_price denormalized: recomputed after each variant sale
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from marketplace.db.base import Base


class Listing(Base):
    """Listing aggregate root — owns images and variants."""
    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    seller_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    card_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    set_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    card_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    condition: Mapped[str | None] = mapped_column(String(30), nullable=True)

    seller_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="GBP")
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", index=True,
    )

    free_shipping: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    shipping_cost_uk: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    shipping_cost_europe: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    shipping_cost_international: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True,
    )

    has_variants: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    bundle_type: Mapped[str | None] = mapped_column(String(30), nullable=True)
    bundle_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    bundle_discount_percentage: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 2), nullable=True,
    )
    remaining_bundle_price: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2), nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    images: Mapped[list["ListingImage"]] = relationship(
        "ListingImage", back_populates="listing",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="ListingImage.display_order",
    )
    variants: Mapped[list["ListingVariant"]] = relationship(
        "ListingVariant", back_populates="listing",
        cascade="all, delete-orphan", lazy="selectin",
    )


class ListingImage(Base):
    __tablename__ = "listing_images"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False,
    )
    image_url: Mapped[str] = mapped_column(Text, nullable=False)
    storage_key: Mapped[str | None] = mapped_column(String(500), nullable=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    listing: Mapped["Listing"] = relationship("Listing", back_populates="images")


class ListingVariant(Base):
    __tablename__ = "listing_variants"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False,
    )
    variant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    variant_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    variant_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_sold: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    listing: Mapped["Listing"] = relationship("Listing", back_populates="variants")
