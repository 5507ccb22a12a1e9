"""Seller Onboarding Routes."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user
from marketplace.infrastructure.database import get_db
from marketplace.schemas.onboarding import OnboardingResponse, OnboardingSubmission
from marketplace.services import onboarding_service

router = APIRouter(prefix="/api/v1/sellers", tags=["sellers"])


@router.post(
    "/onboarding", response_model=OnboardingResponse, status_code=status.HTTP_201_CREATED,
)
async def submit_onboarding(
    body: OnboardingSubmission,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await onboarding_service.submit_onboarding(db, user, body)
