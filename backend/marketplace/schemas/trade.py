"""Trade Schemas — offer creation, counter-offers and completion actions."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TradeOfferCreate(BaseModel):
    target_listing_id: UUID
    trade_items: list[UUID] = Field(default_factory=list)
    cash_amount: Decimal = Field(Decimal("0"), ge=0, le=1_000_000)
    message: str | None = Field(None, max_length=1000)


class TradeCounter(BaseModel):
    trade_items: list[UUID] = Field(default_factory=list)
    cash_amount: Decimal = Field(Decimal("0"), ge=0, le=1_000_000)
    message: str | None = Field(None, max_length=1000)


class TradeComplete(BaseModel):
    action: Literal["mark_shipped", "mark_received"]


class TradeItem(BaseModel):
    listing_id: UUID
    title: str


class TradeOfferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    buyer_id: UUID
    seller_id: UUID
    proposed_by: UUID
    target_listing_id: UUID
    parent_offer_id: UUID | None
    cash_amount: Decimal
    trade_items: list[TradeItem]
    message: str | None
    status: str
    escrow_enabled: bool
    escrow_amount: Decimal
    escrow_released: bool
    expires_at: datetime
    responded_at: datetime | None
    created_at: datetime


class ExpireSweepResponse(BaseModel):
    expired: int
