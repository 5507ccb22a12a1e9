"""Fee Routes — calculate-fees preview used by listing, checkout and offer screens."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.database import get_db
from marketplace.schemas.fees import FeeBreakdownResponse, FeeCalculateRequest
from marketplace.services import fee_service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


@router.post("/calculate", response_model=FeeBreakdownResponse)
async def calculate_fees(
    body: FeeCalculateRequest, db: AsyncSession = Depends(get_db),
):
    breakdown = await fee_service.calculate(db, body)
    return breakdown.to_dict()
