"""Checkout Route — create-checkout for card payments."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user
from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.payment_gateway import PaymentGateway, get_payment_gateway
from marketplace.schemas.order import CheckoutRequest, CheckoutResponse
from marketplace.services import order_service

router = APIRouter(prefix="/api/v1/checkout", tags=["checkout"])


@router.post("", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def create_checkout(
    body: CheckoutRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    address = body.shipping_address.model_dump() if body.shipping_address else None
    return await order_service.create_checkout(db, gateway, user, body.listing_id, address)
