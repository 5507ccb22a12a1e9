"""Payment Gateway — fake gateway bookkeeping and Stripe webhook verification.

Tests cover:
    - FakePaymentGateway records intents, transfers and refunds in minor units
    - Stripe refunds target the payment intent; SDK errors become PaymentProviderError
    - Fake webhook parsing reads type, object id, metadata and amount
    - Stripe webhook parsing rejects missing and bad signatures
    - A correctly signed Stripe payload parses into a WebhookEvent
"""

import hashlib
import hmac
import json
import time

import pytest
import stripe

from marketplace.core.errors import InvalidRequestError, PaymentProviderError
from marketplace.infrastructure.payment_gateway import (
    FakePaymentGateway, StripePaymentGateway,
)

SECRET = "whsec_test_secret"
EVENT = {
    "id": "evt_1",
    "object": "event",
    "type": "payment_intent.succeeded",
    "data": {"object": {
        "id": "pi_123", "object": "payment_intent", "amount": 5370,
        "metadata": {"type": "order", "order_id": "abc"},
    }},
}


def _signature(payload: bytes, secret: str = SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


# --- Fake ---------------------------------------------------------------------

async def test_fake_records_intent_and_transfer():
    gateway = FakePaymentGateway()
    intent = await gateway.create_payment_intent(
        amount=1234, currency="GBP", metadata={"type": "order"},
        application_fee_amount=140, destination_account="acct_1",
    )
    assert intent.id.startswith("pi_fake_")
    assert intent.client_secret.startswith(intent.id)
    assert gateway.intents[0]["currency"] == "gbp"
    assert gateway.intents[0]["destination"] == "acct_1"

    transfer = await gateway.create_transfer(
        amount=500, currency="gbp", destination_account="acct_1", metadata={},
    )
    assert transfer.id.startswith("tr_fake_")
    assert gateway.transfers[0]["amount"] == 500


async def test_fake_records_refund():
    gateway = FakePaymentGateway()
    refund = await gateway.create_refund(
        payment_intent_id="pi_1", amount=2685, metadata={"order_id": "abc"},
    )
    assert refund.id.startswith("re_fake_")
    assert refund.payment_intent_id == "pi_1"
    assert gateway.refunds == [{
        "id": refund.id, "payment_intent": "pi_1", "amount": 2685,
        "metadata": {"order_id": "abc"},
    }]


def test_fake_parses_event():
    event = FakePaymentGateway().parse_webhook(json.dumps(EVENT).encode(), None)
    assert event.type == "payment_intent.succeeded"
    assert event.object_id == "pi_123"
    assert event.metadata == {"type": "order", "order_id": "abc"}
    assert event.amount == 5370


def test_fake_rejects_garbage():
    with pytest.raises(InvalidRequestError):
        FakePaymentGateway().parse_webhook(b"{oops", None)


# --- Stripe -------------------------------------------------------------------

def test_stripe_requires_signature():
    gateway = StripePaymentGateway("sk_test_x", SECRET)
    with pytest.raises(InvalidRequestError) as exc:
        gateway.parse_webhook(json.dumps(EVENT).encode(), None)
    assert exc.value.http_status == 400


def test_stripe_rejects_bad_signature():
    gateway = StripePaymentGateway("sk_test_x", SECRET)
    payload = json.dumps(EVENT).encode()
    with pytest.raises(InvalidRequestError) as exc:
        gateway.parse_webhook(payload, _signature(payload, secret="whsec_other"))
    assert exc.value.message == "Invalid webhook signature"


def test_stripe_accepts_signed_payload():
    gateway = StripePaymentGateway("sk_test_x", SECRET)
    payload = json.dumps(EVENT).encode()
    event = gateway.parse_webhook(payload, _signature(payload))
    assert event.type == "payment_intent.succeeded"
    assert event.object_id == "pi_123"
    assert event.metadata["order_id"] == "abc"


async def test_stripe_refund_targets_intent(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return stripe.Refund.construct_from({"id": "re_1", "amount": kwargs["amount"]}, "sk")

    monkeypatch.setattr(stripe.Refund, "create", fake_create)
    gateway = StripePaymentGateway("sk_test_x", SECRET)
    refund = await gateway.create_refund(
        payment_intent_id="pi_123", amount=5370, metadata={"order_id": "abc"},
    )
    assert refund.id == "re_1"
    assert refund.amount == 5370
    assert calls[0]["payment_intent"] == "pi_123"
    assert calls[0]["api_key"] == "sk_test_x"


async def test_stripe_refund_error_mapped(monkeypatch):
    def failing_create(**kwargs):
        raise stripe.StripeError("charge already refunded")

    monkeypatch.setattr(stripe.Refund, "create", failing_create)
    gateway = StripePaymentGateway("sk_test_x", SECRET)
    with pytest.raises(PaymentProviderError) as exc:
        await gateway.create_refund(payment_intent_id="pi_123", amount=100, metadata={})
    assert exc.value.http_status == 502
    assert exc.value.provider_error_type == "StripeError"
