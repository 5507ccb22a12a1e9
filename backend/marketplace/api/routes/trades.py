"""Trade Routes — trade-create, trade-accept, trade-reject, counter, cancel, complete.

Invariants:
    - Every route requires a bearer token; the sweep requires an admin
    - Role checks (recipient/proposer/participant) happen in the service via core.trade_rules
"""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user, require_admin
from marketplace.infrastructure.database import get_db
from marketplace.schemas.trade import (
    ExpireSweepResponse, TradeComplete, TradeCounter, TradeOfferCreate,
    TradeOfferResponse,
)
from marketplace.services import trade_service

router = APIRouter(prefix="/api/v1/trades", tags=["trades"])


@router.post("", response_model=TradeOfferResponse, status_code=status.HTTP_201_CREATED)
async def create_offer(
    body: TradeOfferCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trade_service.create_offer(
        db, user, body.target_listing_id, body.trade_items, body.cash_amount, body.message,
    )


@router.get("", response_model=list[TradeOfferResponse])
async def list_offers(
    role: Literal["sent", "received"] | None = None,
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trade_service.list_offers(db, user, role, status_filter, limit, offset)


@router.post("/expire", response_model=ExpireSweepResponse)
async def expire_offers(
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Admin sweep: mark pending offers past their expiry as expired."""
    return {"expired": await trade_service.expire_stale_offers(db)}


@router.get("/{offer_id}", response_model=TradeOfferResponse)
async def get_offer(
    offer_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trade_service.get_offer_for_participant(db, user, offer_id)


@router.post("/{offer_id}/accept", response_model=TradeOfferResponse)
async def accept_offer(
    offer_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trade_service.accept_offer(db, user, offer_id)


@router.post("/{offer_id}/reject", response_model=TradeOfferResponse)
async def reject_offer(
    offer_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trade_service.reject_offer(db, user, offer_id)


@router.post(
    "/{offer_id}/counter",
    response_model=TradeOfferResponse,
    status_code=status.HTTP_201_CREATED,
)
async def counter_offer(
    offer_id: UUID,
    body: TradeCounter,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trade_service.counter_offer(
        db, user, offer_id, body.trade_items, body.cash_amount, body.message,
    )


@router.post("/{offer_id}/cancel", response_model=TradeOfferResponse)
async def cancel_offer(
    offer_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trade_service.cancel_offer(db, user, offer_id)


@router.post("/{offer_id}/complete", response_model=TradeOfferResponse)
async def complete_offer(
    offer_id: UUID,
    body: TradeComplete,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await trade_service.complete_offer(db, user, offer_id, body.action)
