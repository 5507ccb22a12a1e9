"""Order Routes — order history, fulfilment (ship / deliver) and admin refunds."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user, require_admin
from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.payment_gateway import PaymentGateway, get_payment_gateway
from marketplace.schemas.order import (
    OrderPage, OrderResponse, RefundRequest, RefundResponse, ShipRequest,
)
from marketplace.services import order_service

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.get("", response_model=OrderPage)
async def list_orders(
    role: Literal["buyer", "seller"] | None = None,
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    orders = await order_service.list_orders(db, user, role, status_filter, limit, offset)
    return {"orders": orders, "limit": limit, "offset": offset}


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await order_service.get_order_for_party(db, user, order_id)


@router.post("/{order_id}/ship", response_model=OrderResponse)
async def ship_order(
    order_id: UUID,
    body: ShipRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    tracking = body.tracking_number if body else None
    return await order_service.ship_order(db, user, order_id, tracking)


@router.post("/{order_id}/deliver", response_model=OrderResponse)
async def confirm_delivery(
    order_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await order_service.confirm_delivery(db, user, order_id)


@router.post("/{order_id}/refund", response_model=RefundResponse)
async def refund_order(
    order_id: UUID,
    body: RefundRequest,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    return await order_service.refund_order(
        db, gateway, admin, order_id, body.refund_type, body.amount, body.reason,
    )
