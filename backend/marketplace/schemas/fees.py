"""Fee Schemas — calculate-fees request and full breakdown response."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class FeeCalculateRequest(BaseModel):
    item_price: Decimal = Field(gt=0, le=1_000_000)
    currency: str = Field("GBP", min_length=3, max_length=3)
    instant_payout: bool = False
    protection_addon: bool = False
    shipping_cost: Decimal = Field(Decimal("0"), ge=0, le=1000)
    wholesale_shipping_cost: Decimal = Field(Decimal("0"), ge=0, le=1000)
    buyer_id: UUID | None = None
    seller_id: UUID | None = None
    preview_only: bool = False


class FeeTierResponse(BaseModel):
    base_fee: Decimal
    percentage_fee: Decimal
    total: Decimal


class FeeBreakdownResponse(BaseModel):
    item_price: Decimal
    currency: str
    buyer_transaction_fee: Decimal
    seller_transaction_fee: Decimal
    buyer_fee_breakdown: FeeTierResponse
    seller_fee_breakdown: FeeTierResponse
    instant_payout_fee: Decimal
    instant_payout_percentage: int
    protection_addon_fee: Decimal
    shipping_cost: Decimal
    shipping_margin: Decimal
    platform_revenue: Decimal
    processing_cost: Decimal
    net_platform_revenue: Decimal
    total_buyer_pays: Decimal
    total_seller_receives: Decimal
    buyer_tier: str
    seller_tier: str
    seller_risk_tier: str
