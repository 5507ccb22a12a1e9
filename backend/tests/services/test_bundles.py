"""Bundle Routes — multi-listing bundles priced at creation.

Tests cover:
    - Bundle total = sum of listing prices less discount
    - Fewer than two, duplicate, foreign or inactive listings are rejected
    - Listing and fetching return the pricing block
    - Only the seller deactivates; inactive bundles drop out of the list
"""

import uuid
from decimal import Decimal


async def _listings(make_listing, seller_id, *prices):
    return [
        await make_listing(seller_id, title=f"Card {i}", seller_price=Decimal(p))
        for i, p in enumerate(prices)
    ]


async def test_create_bundle_applies_discount(client, seller, make_listing):
    listings = await _listings(make_listing, seller.id, "10", "20", "5")
    res = await client.post(
        "/api/v1/bundles",
        json={
            "title": " Starter pack ",
            "listing_ids": [str(lst.id) for lst in listings],
            "discount_percentage": "10",
        },
        headers=seller.headers,
    )
    assert res.status_code == 201
    body = res.json()
    assert body["title"] == "Starter pack"
    assert Decimal(body["total_price"]) == Decimal("31.50")
    assert Decimal(body["pricing"]["individual_total"]) == Decimal("35.00")
    assert Decimal(body["pricing"]["savings"]) == Decimal("3.50")
    assert body["pricing"]["savings_percent"] == 10
    assert [item["title"] for item in body["items"]] == ["Card 0", "Card 1", "Card 2"]


async def test_single_listing_bundle_rejected(client, seller, make_listing):
    (listing,) = await _listings(make_listing, seller.id, "10")
    res = await client.post(
        "/api/v1/bundles",
        json={"title": "Solo", "listing_ids": [str(listing.id)]},
        headers=seller.headers,
    )
    assert res.status_code == 400


async def test_duplicate_listing_rejected(client, seller, make_listing):
    (listing,) = await _listings(make_listing, seller.id, "10")
    res = await client.post(
        "/api/v1/bundles",
        json={"title": "Twice", "listing_ids": [str(listing.id)] * 2},
        headers=seller.headers,
    )
    assert res.status_code == 400
    assert res.json()["error"]["details"][0]["field"] == "listing_ids"


async def test_other_sellers_listing_rejected(client, seller, make_user, make_listing):
    other = await make_user()
    mine = await make_listing(seller.id)
    theirs = await make_listing(other.id)
    res = await client.post(
        "/api/v1/bundles",
        json={"title": "Mixed", "listing_ids": [str(mine.id), str(theirs.id)]},
        headers=seller.headers,
    )
    assert res.status_code == 400
    assert "not one of your listings" in res.json()["error"]["message"]


async def test_sold_listing_rejected(client, seller, make_listing):
    active = await make_listing(seller.id)
    sold = await make_listing(seller.id, status="sold")
    res = await client.post(
        "/api/v1/bundles",
        json={"title": "Stale", "listing_ids": [str(active.id), str(sold.id)]},
        headers=seller.headers,
    )
    assert res.status_code == 400
    assert "not active" in res.json()["error"]["message"]


async def test_get_and_list_bundles(client, seller, make_listing):
    listings = await _listings(make_listing, seller.id, "10", "20")
    created = (await client.post(
        "/api/v1/bundles",
        json={"title": "Pair", "listing_ids": [str(lst.id) for lst in listings]},
        headers=seller.headers,
    )).json()

    res = await client.get(f"/api/v1/bundles/{created['id']}")
    assert res.status_code == 200
    assert Decimal(res.json()["pricing"]["bundle_price"]) == Decimal("30.00")

    res = await client.get("/api/v1/bundles", params={"seller_id": str(seller.id)})
    assert [b["id"] for b in res.json()] == [created["id"]]

    res = await client.get("/api/v1/bundles", params={"seller_id": str(uuid.uuid4())})
    assert res.json() == []


async def test_only_seller_deactivates(client, seller, buyer, make_listing):
    listings = await _listings(make_listing, seller.id, "10", "20")
    created = (await client.post(
        "/api/v1/bundles",
        json={"title": "Pair", "listing_ids": [str(lst.id) for lst in listings]},
        headers=seller.headers,
    )).json()
    url = f"/api/v1/bundles/{created['id']}"

    res = await client.delete(url, headers=buyer.headers)
    assert res.status_code == 403

    res = await client.delete(url, headers=seller.headers)
    assert res.status_code == 200
    assert res.json()["status"] == "inactive"
    assert (await client.get("/api/v1/bundles")).json() == []


async def test_unknown_bundle_returns_404(client):
    res = await client.get(f"/api/v1/bundles/{uuid.uuid4()}")
    assert res.status_code == 404
