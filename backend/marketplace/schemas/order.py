"""Order Schemas — checkout, order views and refunds."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from marketplace.core.domain_types import RefundType


class ShippingAddress(BaseModel):
    name: str | None = Field(None, max_length=200)
    line1: str | None = Field(None, max_length=200)
    line2: str | None = Field(None, max_length=200)
    city: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, max_length=20)
    country: str | None = Field(None, max_length=2)


class CheckoutRequest(BaseModel):
    listing_id: UUID
    shipping_address: ShippingAddress | None = None


class CheckoutResponse(BaseModel):
    client_secret: str
    order_id: UUID
    payment_intent_id: str
    total_amount: Decimal
    currency: str


class ShipRequest(BaseModel):
    tracking_number: str | None = Field(None, max_length=100)


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    buyer_id: UUID
    seller_id: UUID
    listing_id: UUID
    status: str
    payment_method: str
    item_price: Decimal
    shipping_cost: Decimal
    buyer_fee: Decimal
    seller_fee: Decimal
    platform_fee: Decimal
    total_amount: Decimal
    seller_amount: Decimal
    refunded_amount: Decimal
    currency: str
    shipping_address: dict | None
    tracking_number: str | None
    seller_settled: bool
    created_at: datetime
    paid_at: datetime | None
    shipped_at: datetime | None
    delivered_at: datetime | None
    refunded_at: datetime | None


class OrderPage(BaseModel):
    orders: list[OrderResponse]
    limit: int
    offset: int


class RefundRequest(BaseModel):
    refund_type: RefundType = RefundType.FULL
    amount: Decimal | None = Field(None, gt=0)
    reason: str = Field(min_length=1, max_length=500)


class RefundResponse(BaseModel):
    order_id: UUID
    refund_id: str | None
    amount: Decimal
    refunded_amount: Decimal
    status: str
