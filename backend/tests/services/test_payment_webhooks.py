"""Payment Webhook Route — dispatch of provider events.

Tests cover:
    - Unknown event types and metadata types are acknowledged, not handled
    - Events for unknown intents are acknowledged, not handled
    - A failed order payment cancels the pending order
    - A payment for a listing that already sold is refunded, not sold twice
    - Malformed payloads are rejected with 400
"""

from decimal import Decimal

from tests.services.fakes import payment_event


async def test_unknown_event_type_ignored(client):
    res = await client.post(
        "/api/v1/webhooks/payments",
        json=payment_event("charge.refunded", "ch_1", {"type": "order"}),
    )
    assert res.status_code == 200
    assert res.json() == {"received": True, "handled": False}


async def test_unknown_metadata_type_ignored(client):
    res = await client.post(
        "/api/v1/webhooks/payments",
        json=payment_event("payment_intent.succeeded", "pi_1", {"type": "membership"}),
    )
    assert res.json()["handled"] is False


async def test_unknown_intent_not_handled(client):
    res = await client.post(
        "/api/v1/webhooks/payments",
        json=payment_event(
            "payment_intent.succeeded", "pi_missing",
            {"type": "order", "order_id": "not-a-uuid"},
        ),
    )
    assert res.json()["handled"] is False

    res = await client.post(
        "/api/v1/webhooks/payments",
        json=payment_event("payment_intent.succeeded", "pi_missing", {"type": "wallet_deposit"}),
    )
    assert res.json()["handled"] is False


async def test_failed_payment_cancels_order(client, seller, buyer, make_listing, gateway):
    listing = await make_listing(seller.id)
    order_id = (await client.post(
        "/api/v1/checkout", json={"listing_id": str(listing.id)}, headers=buyer.headers,
    )).json()["order_id"]
    intent = gateway.intents[0]

    res = await client.post(
        "/api/v1/webhooks/payments",
        json=payment_event("payment_intent.payment_failed", intent["id"], intent["metadata"]),
    )
    assert res.json()["handled"] is True
    order = (await client.get(f"/api/v1/orders/{order_id}", headers=buyer.headers)).json()
    assert order["status"] == "cancelled"

    res = await client.post(
        "/api/v1/webhooks/payments",
        json=payment_event("payment_intent.succeeded", intent["id"], intent["metadata"]),
    )
    assert res.json()["handled"] is False


async def test_malformed_payload_rejected(client):
    res = await client.post(
        "/api/v1/webhooks/payments",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 400

    res = await client.post("/api/v1/webhooks/payments", json=["a", "list"])
    assert res.status_code == 400


async def test_payment_for_sold_listing_is_refunded(
    client, seller, buyer, make_user, make_listing, gateway,
):
    listing = await make_listing(seller.id)
    order_id = (await client.post(
        "/api/v1/checkout", json={"listing_id": str(listing.id)}, headers=buyer.headers,
    )).json()["order_id"]
    intent = gateway.intents[0]

    rival = await make_user(balance=Decimal("100.00"))
    res = await client.post(
        "/api/v1/wallet/purchases", json={"listing_id": str(listing.id)}, headers=rival.headers,
    )
    assert res.status_code == 201

    res = await client.post(
        "/api/v1/webhooks/payments",
        json=payment_event("payment_intent.succeeded", intent["id"], intent["metadata"]),
    )
    assert res.json()["handled"] is True
    (refund,) = gateway.refunds
    assert refund["payment_intent"] == intent["id"]
    assert refund["amount"] == intent["amount"]

    order = (await client.get(f"/api/v1/orders/{order_id}", headers=buyer.headers)).json()
    assert order["status"] == "refunded"
    assert Decimal(order["refunded_amount"]) == Decimal(order["total_amount"])
    assert order["paid_at"] is not None

    res = await client.post(
        "/api/v1/webhooks/payments",
        json=payment_event("payment_intent.succeeded", intent["id"], intent["metadata"]),
    )
    assert res.json()["handled"] is False
    assert len(gateway.refunds) == 1
