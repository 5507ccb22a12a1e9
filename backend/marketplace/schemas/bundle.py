"""Bundle Schemas — bundle creation and the priced bundle view."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class BundleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    listing_ids: list[UUID] = Field(min_length=2, max_length=50)
    discount_percentage: Decimal = Field(Decimal("0"), ge=0, lt=100)


class BundlePricingResponse(BaseModel):
    individual_total: Decimal
    bundle_price: Decimal
    savings: Decimal
    savings_percent: int


class BundleItemResponse(BaseModel):
    listing_id: UUID
    title: str
    seller_price: Decimal
    status: str


class BundleResponse(BaseModel):
    id: UUID
    seller_id: UUID
    title: str
    description: str | None
    discount_percentage: Decimal
    total_price: Decimal | None
    status: str
    items: list[BundleItemResponse]
    pricing: BundlePricingResponse
