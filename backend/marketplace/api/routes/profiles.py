"""Profile Routes."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user
from marketplace.infrastructure.database import get_db
from marketplace.schemas.profile import (
    ProfileResponse, ProfileUpdate, PublicProfileResponse,
)
from marketplace.services import profile_service

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await profile_service.get_my_profile(db, user)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await profile_service.update_my_profile(db, user, body)


@router.get("/{profile_id}", response_model=PublicProfileResponse)
async def get_public_profile(profile_id: UUID, db: AsyncSession = Depends(get_db)):
    return await profile_service.public_profile(db, profile_id)
