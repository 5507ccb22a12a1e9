"""Listing Schemas — create/update payloads and listing views.

Invariants:
    - seller_price > 0; shipping costs 0..1000 when given
    - ListingUpdate fields are all optional; only provided fields change
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VariantCreate(BaseModel):
    variant_name: str = Field(min_length=1, max_length=200)
    variant_price: Decimal = Field(gt=0, le=1_000_000)
    variant_quantity: int = Field(1, ge=0)


class ListingCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    card_name: str | None = Field(None, max_length=200)
    set_name: str | None = Field(None, max_length=200)
    card_number: str | None = Field(None, max_length=30)
    condition: str | None = Field(None, max_length=30)
    seller_price: Decimal = Field(gt=0, le=1_000_000)
    currency: Literal["GBP", "USD", "EUR"] = "GBP"
    status: Literal["draft", "active"] = "active"
    free_shipping: bool = False
    shipping_cost_uk: Decimal | None = Field(None, ge=0, le=1000)
    shipping_cost_europe: Decimal | None = Field(None, ge=0, le=1000)
    shipping_cost_international: Decimal | None = Field(None, ge=0, le=1000)
    bundle_type: Literal["bundle_with_discount", "variants_only"] | None = None
    bundle_discount_percentage: Decimal | None = Field(None, ge=0, lt=100)
    variants: list[VariantCreate] = Field(default_factory=list, max_length=50)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        return v


class ListingUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)
    condition: str | None = Field(None, max_length=30)
    seller_price: Decimal | None = Field(None, gt=0, le=1_000_000)
    status: Literal["draft", "active", "reserved"] | None = None
    free_shipping: bool | None = None
    shipping_cost_uk: Decimal | None = Field(None, ge=0, le=1000)
    shipping_cost_europe: Decimal | None = Field(None, ge=0, le=1000)
    shipping_cost_international: Decimal | None = Field(None, ge=0, le=1000)

    @field_validator("title", "seller_price", "free_shipping", "status")
    @classmethod
    def reject_null(cls, v, info):
        # Omit a field to leave it unchanged; these columns have no empty state
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class ListingImageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    image_url: str
    display_order: int


class ListingVariantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    variant_name: str
    variant_price: Decimal
    variant_quantity: int
    is_available: bool
    is_sold: bool


class ListingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    seller_id: UUID
    title: str
    description: str | None
    card_name: str | None
    set_name: str | None
    card_number: str | None
    condition: str | None
    seller_price: Decimal
    currency: str
    status: str
    free_shipping: bool
    shipping_cost_uk: Decimal | None
    shipping_cost_europe: Decimal | None
    shipping_cost_international: Decimal | None
    has_variants: bool
    bundle_type: str | None
    bundle_price: Decimal | None
    bundle_discount_percentage: Decimal | None
    remaining_bundle_price: Decimal | None
    created_at: datetime
    images: list[ListingImageResponse] = []
    variants: list[ListingVariantResponse] = []


class ListingPage(BaseModel):
    listings: list[ListingResponse]
    limit: int
    offset: int


class VariantSaleResponse(BaseModel):
    listing_id: UUID
    variant_id: UUID
    listing_status: str
    remaining_variants: int
    remaining_bundle_price: Decimal | None
    bundle_price: Decimal | None
    bundle_discount_percentage: Decimal | None
