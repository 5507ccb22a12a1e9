"""Profile Service — lazily created profiles and public profile views.

Invariants:
    - A profile row exists for every user who has called a state-changing endpoint
    - ensure_profile flushes but never commits (callers own the transaction)
"""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.domain_types import ListingStatus
from marketplace.core.errors import ResourceNotFoundError
from marketplace.infrastructure.auth import CurrentUser
from marketplace.models.listing import Listing
from marketplace.models.profile import Profile
from marketplace.schemas.profile import ProfileUpdate

logger = logging.getLogger(__name__)


async def ensure_profile(db: AsyncSession, user: CurrentUser) -> Profile:
    profile = await db.get(Profile, user.id)
    if profile is None:
        profile = Profile(id=user.id, email=user.email)
        db.add(profile)
        await db.flush()
        logger.info(f"Created profile {user.id}", extra={"user_id": str(user.id)})
    return profile


async def get_profile(db: AsyncSession, profile_id: UUID) -> Profile:
    profile = await db.get(Profile, profile_id)
    if profile is None:
        raise ResourceNotFoundError("Profile", str(profile_id))
    return profile


async def get_my_profile(db: AsyncSession, user: CurrentUser) -> Profile:
    profile = await ensure_profile(db, user)
    await db.commit()
    return profile


async def update_my_profile(
    db: AsyncSession, user: CurrentUser, body: ProfileUpdate,
) -> Profile:
    profile = await ensure_profile(db, user)
    for name, value in body.model_dump(exclude_unset=True).items():
        setattr(profile, name, value.strip() if isinstance(value, str) else value)
    await db.commit()
    logger.info(f"Updated profile {user.id}", extra={"user_id": str(user.id)})
    return profile


async def public_profile(db: AsyncSession, profile_id: UUID) -> dict:
    """Public fields plus the number of active listings."""
    profile = await get_profile(db, profile_id)
    active_count = await db.scalar(
        select(func.count(Listing.id)).where(
            Listing.seller_id == profile_id,
            Listing.status == ListingStatus.ACTIVE.value,
        ),
    )
    return {
        "id": profile.id,
        "display_name": profile.display_name,
        "bio": profile.bio,
        "location": profile.location,
        "membership_tier": profile.membership_tier,
        "created_at": profile.created_at,
        "active_listing_count": active_count or 0,
    }
