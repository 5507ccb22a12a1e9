"""Payment Gateway — payment intents, payouts, refunds and webhook parsing behind one protocol.

Invariants:
    - Amounts crossing this boundary are integer minor units (pence/cents)
    - Provider failures surface as PaymentProviderError (502), never raw SDK errors
    - Webhook payloads are only trusted after signature verification (Stripe)

Design Decisions:
    - Protocol + two implementations: services never import the SDK directly
    - Stripe SDK is synchronous; calls run in a worker thread to keep the event loop free
    - FakePaymentGateway is deterministic and in-memory (local development and tests)
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Protocol

import stripe

from marketplace.config import get_settings
from marketplace.core.errors import InvalidRequestError, PaymentProviderError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntentResult:
    id: str
    client_secret: str
    amount: int
    currency: str


@dataclass(frozen=True)
class TransferResult:
    id: str
    amount: int
    currency: str
    destination: str


@dataclass(frozen=True)
class RefundResult:
    id: str
    amount: int
    payment_intent_id: str


@dataclass(frozen=True)
class WebhookEvent:
    type: str
    object_id: str
    metadata: dict = field(default_factory=dict)
    amount: int | None = None


class PaymentGateway(Protocol):
    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        application_fee_amount: int | None = None,
        destination_account: str | None = None,
    ) -> PaymentIntentResult: ...

    async def create_transfer(
        self,
        *,
        amount: int,
        currency: str,
        destination_account: str,
        metadata: dict[str, str],
    ) -> TransferResult: ...

    async def create_refund(
        self,
        *,
        payment_intent_id: str,
        amount: int,
        metadata: dict[str, str],
    ) -> RefundResult: ...

    def parse_webhook(self, payload: bytes, signature: str | None) -> WebhookEvent: ...


def _event_from_dict(event: dict) -> WebhookEvent:
    obj = (event.get("data") or {}).get("object") or {}
    return WebhookEvent(
        type=str(event.get("type") or ""),
        object_id=str(obj.get("id") or ""),
        metadata=dict(obj.get("metadata") or {}),
        amount=obj.get("amount"),
    )


# ─── Stripe ─────────────────────────────────────────────────────

class StripePaymentGateway:
    """Stripe implementation (destination charges + transfers to connected accounts)."""

    def __init__(self, secret_key: str, webhook_secret: str):
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        application_fee_amount: int | None = None,
        destination_account: str | None = None,
    ) -> PaymentIntentResult:
        params: dict = {
            "amount": amount,
            "currency": currency.lower(),
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if destination_account:
            params["transfer_data"] = {"destination": destination_account}
            if application_fee_amount is not None:
                params["application_fee_amount"] = application_fee_amount
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create, api_key=self._secret_key, **params,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe payment intent failed: {e}")
            raise PaymentProviderError(
                e.user_message or "Payment intent creation failed",
                type(e).__name__,
            )
        return PaymentIntentResult(
            id=intent.id,
            client_secret=intent.client_secret,
            amount=intent.amount,
            currency=intent.currency,
        )

    async def create_transfer(
        self,
        *,
        amount: int,
        currency: str,
        destination_account: str,
        metadata: dict[str, str],
    ) -> TransferResult:
        try:
            transfer = await asyncio.to_thread(
                stripe.Transfer.create,
                api_key=self._secret_key,
                amount=amount,
                currency=currency.lower(),
                destination=destination_account,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe transfer failed: {e}")
            raise PaymentProviderError(
                e.user_message or "Transfer failed", type(e).__name__,
            )
        return TransferResult(
            id=transfer.id,
            amount=transfer.amount,
            currency=transfer.currency,
            destination=destination_account,
        )

    async def create_refund(
        self,
        *,
        payment_intent_id: str,
        amount: int,
        metadata: dict[str, str],
    ) -> RefundResult:
        try:
            refund = await asyncio.to_thread(
                stripe.Refund.create,
                api_key=self._secret_key,
                payment_intent=payment_intent_id,
                amount=amount,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe refund failed: {e}")
            raise PaymentProviderError(
                e.user_message or "Refund failed", type(e).__name__,
            )
        return RefundResult(
            id=refund.id, amount=refund.amount, payment_intent_id=payment_intent_id,
        )

    def parse_webhook(self, payload: bytes, signature: str | None) -> WebhookEvent:
        if not signature:
            raise InvalidRequestError("Missing webhook signature", field="stripe-signature")
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except stripe.SignatureVerificationError:
            raise InvalidRequestError("Invalid webhook signature", field="stripe-signature")
        except ValueError:
            raise InvalidRequestError("Invalid webhook payload")
        # construct_event has already parsed the payload once; this re-read cannot fail
        return _event_from_dict(json.loads(payload))


# ─── Fake ───────────────────────────────────────────────────────

class FakePaymentGateway:
    """In-memory gateway. Records every call; trusts webhook payloads."""

    def __init__(self):
        self.intents: list[dict] = []
        self.transfers: list[dict] = []
        self.refunds: list[dict] = []

    async def create_payment_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        application_fee_amount: int | None = None,
        destination_account: str | None = None,
    ) -> PaymentIntentResult:
        intent_id = f"pi_fake_{uuid.uuid4().hex[:24]}"
        self.intents.append({
            "id": intent_id,
            "amount": amount,
            "currency": currency.lower(),
            "metadata": dict(metadata),
            "application_fee_amount": application_fee_amount,
            "destination": destination_account,
        })
        return PaymentIntentResult(
            id=intent_id,
            client_secret=f"{intent_id}_secret_fake",
            amount=amount,
            currency=currency.lower(),
        )

    async def create_transfer(
        self,
        *,
        amount: int,
        currency: str,
        destination_account: str,
        metadata: dict[str, str],
    ) -> TransferResult:
        transfer_id = f"tr_fake_{uuid.uuid4().hex[:24]}"
        self.transfers.append({
            "id": transfer_id,
            "amount": amount,
            "currency": currency.lower(),
            "destination": destination_account,
            "metadata": dict(metadata),
        })
        return TransferResult(
            id=transfer_id,
            amount=amount,
            currency=currency.lower(),
            destination=destination_account,
        )

    async def create_refund(
        self,
        *,
        payment_intent_id: str,
        amount: int,
        metadata: dict[str, str],
    ) -> RefundResult:
        refund_id = f"re_fake_{uuid.uuid4().hex[:24]}"
        self.refunds.append({
            "id": refund_id,
            "payment_intent": payment_intent_id,
            "amount": amount,
            "metadata": dict(metadata),
        })
        return RefundResult(id=refund_id, amount=amount, payment_intent_id=payment_intent_id)

    def parse_webhook(self, payload: bytes, signature: str | None) -> WebhookEvent:
        try:
            event = json.loads(payload or b"{}")
        except ValueError:
            raise InvalidRequestError("Invalid webhook payload")
        if not isinstance(event, dict):
            raise InvalidRequestError("Invalid webhook payload")
        return _event_from_dict(event)


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency — gateway selected by settings.payment_provider."""
    settings = get_settings()
    if settings.payment_provider == "stripe":
        return StripePaymentGateway(
            settings.stripe_secret_key, settings.stripe_webhook_secret,
        )
    logger.warning("Using fake payment gateway")
    return FakePaymentGateway()
