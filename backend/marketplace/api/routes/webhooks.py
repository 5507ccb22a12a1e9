"""Payment Webhook Route — provider callbacks, verified by the gateway before dispatch."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.payment_gateway import PaymentGateway, get_payment_gateway
from marketplace.services import payment_webhook_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post("/payments")
async def payment_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    payload = await request.body()
    event = gateway.parse_webhook(payload, request.headers.get("stripe-signature"))
    logger.info(f"Payment webhook {event.type} for {event.object_id}")
    return await payment_webhook_service.handle_event(db, gateway, event)
