"""Profile Schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdate(BaseModel):
    display_name: str | None = Field(None, max_length=100)
    bio: str | None = Field(None, max_length=1000)
    location: str | None = Field(None, max_length=120)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str | None
    display_name: str | None
    bio: str | None
    location: str | None
    membership_tier: str
    promo_expires_at: datetime | None
    onboarding_status: str
    payouts_enabled: bool
    created_at: datetime


class PublicProfileResponse(BaseModel):
    id: UUID
    display_name: str | None
    bio: str | None
    location: str | None
    membership_tier: str
    created_at: datetime
    active_listing_count: int
