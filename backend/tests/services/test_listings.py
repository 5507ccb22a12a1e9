"""Listing Routes — create, search, edit, remove, image upload and variant sales.

Tests cover:
    - Create requires auth; bundle listings need >= 2 variants and are priced on creation
    - Search filters by text/price/status and sorts by price
    - Only the seller edits; sold listings are read-only
    - Image uploads land in the listing-images bucket, max 10, images only
    - Selling variants reprices the remaining bundle and sells the last one out
"""

import uuid
from decimal import Decimal

from sqlalchemy import select

from marketplace.models.listing import Listing, ListingImage
from tests.services.fakes import auth_headers

LISTING = {
    "title": "Blastoise Base Set",
    "card_name": "Blastoise",
    "set_name": "Base Set",
    "condition": "excellent",
    "seller_price": "35.00",
    "shipping_cost_uk": "2.50",
}


# --- Create -------------------------------------------------------------------

async def test_create_listing_requires_auth(client):
    res = await client.post("/api/v1/listings", json=LISTING)
    assert res.status_code == 401


async def test_create_listing(client, seller):
    res = await client.post("/api/v1/listings", json=LISTING, headers=seller.headers)
    assert res.status_code == 201
    body = res.json()
    assert body["seller_id"] == str(seller.id)
    assert body["status"] == "active"
    assert Decimal(body["seller_price"]) == Decimal("35.00")
    assert body["images"] == []


async def test_create_listing_creates_missing_profile(client):
    res = await client.post(
        "/api/v1/listings", json=LISTING, headers=auth_headers(uuid.uuid4()),
    )
    assert res.status_code == 201


async def test_zero_price_rejected(client, seller):
    res = await client.post(
        "/api/v1/listings", json={**LISTING, "seller_price": "0"}, headers=seller.headers,
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert res.json()["error"]["details"][0]["field"] == "seller_price"
    assert "timestamp" in res.json()["error"]


async def test_blank_title_rejected(client, seller):
    res = await client.post(
        "/api/v1/listings", json={**LISTING, "title": "   "}, headers=seller.headers,
    )
    assert res.status_code == 400


async def test_discounted_bundle_priced_on_create(client, seller):
    payload = {
        **LISTING,
        "bundle_type": "bundle_with_discount",
        "bundle_discount_percentage": "10",
        "variants": [
            {"variant_name": "Holo", "variant_price": "10"},
            {"variant_name": "Reverse", "variant_price": "20"},
            {"variant_name": "Promo", "variant_price": "5"},
        ],
    }
    res = await client.post("/api/v1/listings", json=payload, headers=seller.headers)
    assert res.status_code == 201
    body = res.json()
    assert body["has_variants"] is True
    assert Decimal(body["bundle_price"]) == Decimal("31.50")
    assert Decimal(body["remaining_bundle_price"]) == Decimal("31.50")
    assert len(body["variants"]) == 3


async def test_bundle_with_one_variant_rejected(client, seller):
    payload = {
        **LISTING,
        "bundle_type": "variants_only",
        "variants": [{"variant_name": "Holo", "variant_price": "10"}],
    }
    res = await client.post("/api/v1/listings", json=payload, headers=seller.headers)
    assert res.status_code == 400
    assert res.json()["error"]["details"][0]["field"] == "variants"


# --- Search -------------------------------------------------------------------

async def test_search_returns_active_listings_only(client, seller, make_listing):
    await make_listing(seller.id, title="Pikachu Jungle")
    await make_listing(seller.id, title="Pikachu Promo", status="sold")
    res = await client.get("/api/v1/listings", params={"q": "pikachu"})
    assert res.status_code == 200
    titles = [lst["title"] for lst in res.json()["listings"]]
    assert titles == ["Pikachu Jungle"]


async def test_search_by_status_and_price_sort(client, seller, make_listing):
    await make_listing(seller.id, title="Cheap", seller_price=Decimal("5"))
    await make_listing(seller.id, title="Pricey", seller_price=Decimal("500"))
    await make_listing(seller.id, title="Mid", seller_price=Decimal("50"))
    res = await client.get("/api/v1/listings", params={"sort": "price_desc"})
    assert [lst["title"] for lst in res.json()["listings"]] == ["Pricey", "Mid", "Cheap"]

    res = await client.get(
        "/api/v1/listings", params={"min_price": "10", "max_price": "100"},
    )
    assert [lst["title"] for lst in res.json()["listings"]] == ["Mid"]


async def test_search_pagination_echoed(client):
    res = await client.get("/api/v1/listings", params={"limit": 5, "offset": 10})
    assert res.json() == {"listings": [], "limit": 5, "offset": 10}


async def test_get_unknown_listing_returns_404(client):
    res = await client.get(f"/api/v1/listings/{uuid.uuid4()}")
    assert res.status_code == 404


# --- Edit / remove ------------------------------------------------------------

async def test_seller_updates_price(client, seller, make_listing):
    listing = await make_listing(seller.id)
    res = await client.patch(
        f"/api/v1/listings/{listing.id}",
        json={"seller_price": "42.00"},
        headers=seller.headers,
    )
    assert res.status_code == 200
    assert Decimal(res.json()["seller_price"]) == Decimal("42.00")
    assert res.json()["title"] == listing.title


async def test_null_for_required_column_rejected(client, seller, make_listing):
    listing = await make_listing(seller.id)
    res = await client.patch(
        f"/api/v1/listings/{listing.id}",
        json={"title": None, "seller_price": None},
        headers=seller.headers,
    )
    assert res.status_code == 400
    fields = {d["field"] for d in res.json()["error"]["details"]}
    assert fields == {"title", "seller_price"}

    res = await client.get(f"/api/v1/listings/{listing.id}")
    assert res.json()["title"] == listing.title


async def test_null_description_clears_it(client, seller, make_listing):
    listing = await make_listing(seller.id, description="Light play")
    res = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"description": None}, headers=seller.headers,
    )
    assert res.status_code == 200
    assert res.json()["description"] is None


async def test_other_user_cannot_update(client, seller, buyer, make_listing):
    listing = await make_listing(seller.id)
    res = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"title": "Mine now"}, headers=buyer.headers,
    )
    assert res.status_code == 403


async def test_sold_listing_is_read_only(client, seller, make_listing):
    listing = await make_listing(seller.id, status="sold")
    res = await client.patch(
        f"/api/v1/listings/{listing.id}", json={"title": "Relist"}, headers=seller.headers,
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "LISTING_NOT_EDITABLE"


async def test_delete_soft_removes(client, seller, make_listing, test_db):
    listing = await make_listing(seller.id)
    res = await client.delete(f"/api/v1/listings/{listing.id}", headers=seller.headers)
    assert res.status_code == 200
    assert res.json()["status"] == "removed"
    row = (await test_db.execute(
        select(Listing.status).where(Listing.id == listing.id),
    )).scalar_one()
    assert row == "removed"


# --- Images -------------------------------------------------------------------

async def test_upload_image(client, seller, make_listing, s3_client):
    listing = await make_listing(seller.id)
    res = await client.post(
        f"/api/v1/listings/{listing.id}/images",
        files={"file": ("front.PNG", b"\x89PNG...", "image/png")},
        headers=seller.headers,
    )
    assert res.status_code == 201
    body = res.json()
    assert body["display_order"] == 0
    assert body["image_url"].startswith(f"http://storage.test/listing-images/listings/{seller.id}/")
    assert body["image_url"].endswith(".png")
    ((bucket, key),) = s3_client.objects.keys()
    assert bucket == "listing-images"
    assert s3_client.objects[(bucket, key)]["ContentType"] == "image/png"


async def test_second_image_appends_order(client, seller, make_listing):
    listing = await make_listing(seller.id)
    for _ in range(2):
        res = await client.post(
            f"/api/v1/listings/{listing.id}/images",
            files={"file": ("a.jpg", b"jpeg", "image/jpeg")},
            headers=seller.headers,
        )
    assert res.json()["display_order"] == 1


async def test_non_image_upload_rejected(client, seller, make_listing, s3_client):
    listing = await make_listing(seller.id)
    res = await client.post(
        f"/api/v1/listings/{listing.id}/images",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=seller.headers,
    )
    assert res.status_code == 400
    assert s3_client.objects == {}


async def test_eleventh_image_rejected(client, seller, make_listing, test_db):
    listing = await make_listing(seller.id)
    for i in range(10):
        test_db.add(ListingImage(listing_id=listing.id, image_url=f"u{i}", display_order=i))
    await test_db.commit()
    res = await client.post(
        f"/api/v1/listings/{listing.id}/images",
        files={"file": ("a.jpg", b"jpeg", "image/jpeg")},
        headers=seller.headers,
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "TOO_MANY_IMAGES"


# --- Variant sales ------------------------------------------------------------

async def _bundle_listing(client, seller) -> dict:
    payload = {
        **LISTING,
        "bundle_type": "bundle_with_discount",
        "bundle_discount_percentage": "10",
        "variants": [
            {"variant_name": "Holo", "variant_price": "10"},
            {"variant_name": "Reverse", "variant_price": "20"},
            {"variant_name": "Promo", "variant_price": "30"},
        ],
    }
    res = await client.post("/api/v1/listings", json=payload, headers=seller.headers)
    return res.json()


async def test_selling_a_variant_reprices_bundle(client, seller):
    listing = await _bundle_listing(client, seller)
    holo = next(v for v in listing["variants"] if v["variant_name"] == "Holo")
    res = await client.post(
        f"/api/v1/listings/{listing['id']}/variants/{holo['id']}/sell",
        headers=seller.headers,
    )
    assert res.status_code == 200
    body = res.json()
    assert body["listing_status"] == "active"
    assert body["remaining_variants"] == 2
    assert Decimal(body["remaining_bundle_price"]) == Decimal("45.00")


async def test_selling_down_to_one_variant_drops_discount(client, seller):
    listing = await _bundle_listing(client, seller)
    ids = {v["variant_name"]: v["id"] for v in listing["variants"]}
    base = f"/api/v1/listings/{listing['id']}/variants"
    await client.post(f"{base}/{ids['Holo']}/sell", headers=seller.headers)
    res = await client.post(f"{base}/{ids['Reverse']}/sell", headers=seller.headers)
    body = res.json()
    assert Decimal(body["remaining_bundle_price"]) == Decimal("30.00")
    assert Decimal(body["bundle_discount_percentage"]) == Decimal("0")


async def test_selling_last_variant_sells_listing(client, seller):
    listing = await _bundle_listing(client, seller)
    base = f"/api/v1/listings/{listing['id']}/variants"
    for variant in listing["variants"]:
        res = await client.post(f"{base}/{variant['id']}/sell", headers=seller.headers)
    assert res.json()["listing_status"] == "sold"
    assert res.json()["remaining_variants"] == 0


async def test_selling_variant_twice_rejected(client, seller):
    listing = await _bundle_listing(client, seller)
    url = f"/api/v1/listings/{listing['id']}/variants/{listing['variants'][0]['id']}/sell"
    await client.post(url, headers=seller.headers)
    res = await client.post(url, headers=seller.headers)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VARIANT_SOLD"
