"""Payment Webhook Dispatch — routes verified provider events to order and wallet updates.

Invariants:
    - Only payment_intent.succeeded / payment_intent.payment_failed change state
    - metadata.type selects the target: "order" or "wallet_deposit"
    - Unknown events and types are acknowledged and ignored (the provider stops retrying)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.payment_gateway import PaymentGateway, WebhookEvent
from marketplace.services import order_service, wallet_service

logger = logging.getLogger(__name__)

SUCCEEDED = "payment_intent.succeeded"
FAILED = "payment_intent.payment_failed"


async def handle_event(
    db: AsyncSession, gateway: PaymentGateway, event: WebhookEvent,
) -> dict:
    kind = event.metadata.get("type")
    handled = False
    if event.type == SUCCEEDED and kind == "order":
        handled = await order_service.mark_order_paid(
            db, gateway, event.object_id, event.metadata.get("order_id"),
        )
    elif event.type == SUCCEEDED and kind == "wallet_deposit":
        handled = await wallet_service.confirm_deposit(db, event.object_id)
    elif event.type == FAILED and kind == "order":
        handled = await order_service.cancel_unpaid_order(
            db, event.object_id, event.metadata.get("order_id"),
        )
    elif event.type == FAILED and kind == "wallet_deposit":
        handled = await wallet_service.fail_deposit(db, event.object_id)
    else:
        logger.info(f"Ignoring payment event {event.type} ({kind})")
    return {"received": True, "handled": handled}
