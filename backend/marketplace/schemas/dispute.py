"""Dispute Schemas — buyer claims and admin resolution."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DisputeCreate(BaseModel):
    order_id: UUID
    dispute_type: str
    reason: str = Field(max_length=5000)
    evidence_urls: list[str] = Field(default_factory=list)


class DisputeUpdate(BaseModel):
    status: Literal["in_review", "resolved", "closed"]
    resolution: str | None = None
    resolution_notes: str | None = Field(None, max_length=5000)
    refund_amount: Decimal | None = Field(None, gt=0)


class DisputeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    listing_id: UUID
    buyer_id: UUID
    seller_id: UUID
    dispute_type: str
    reason: str
    buyer_evidence: dict | None
    status: str
    priority: str
    resolution: str | None
    resolution_notes: str | None
    created_at: datetime
    resolved_at: datetime | None


class EvidenceUploadResponse(BaseModel):
    url: str
    key: str


class SlaCheckResponse(BaseModel):
    total: int
    breached_response: int
    escalated: int
    critical: int
