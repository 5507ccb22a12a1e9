"""Bundle Service — seller-defined multi-listing bundles.

Invariants:
    - A bundle holds >= 2 distinct active listings, all owned by its seller
    - total_price is fixed at creation; the pricing block is recomputed on read
    - Deleting a bundle only deactivates it
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.bundle_pricing import display_bundle_price, price_bundle
from marketplace.core.domain_types import ListingStatus
from marketplace.core.errors import (
    InvalidRequestError, PermissionDeniedError, ResourceNotFoundError,
)
from marketplace.infrastructure.auth import CurrentUser
from marketplace.models.bundle import Bundle, BundleItem
from marketplace.models.listing import Listing
from marketplace.schemas.bundle import BundleCreate
from marketplace.services.profile_service import ensure_profile

logger = logging.getLogger(__name__)

MIN_BUNDLE_ITEMS = 2


def bundle_view(bundle: Bundle) -> dict:
    listings = [item.listing for item in bundle.items]
    pricing = display_bundle_price(
        bundle.total_price, [lst.seller_price for lst in listings],
    )
    return {
        "id": bundle.id,
        "seller_id": bundle.seller_id,
        "title": bundle.title,
        "description": bundle.description,
        "discount_percentage": bundle.discount_percentage,
        "total_price": bundle.total_price,
        "status": bundle.status,
        "items": [
            {
                "listing_id": lst.id,
                "title": lst.title,
                "seller_price": lst.seller_price,
                "status": lst.status,
            }
            for lst in listings
        ],
        "pricing": {
            "individual_total": pricing.individual_total,
            "bundle_price": pricing.bundle_price,
            "savings": pricing.savings,
            "savings_percent": pricing.savings_percent,
        },
    }


async def create_bundle(
    db: AsyncSession, user: CurrentUser, body: BundleCreate,
) -> Bundle:
    if len(set(body.listing_ids)) != len(body.listing_ids):
        raise InvalidRequestError("Duplicate listings in bundle", field="listing_ids")
    if len(body.listing_ids) < MIN_BUNDLE_ITEMS:
        raise InvalidRequestError(
            f"A bundle needs at least {MIN_BUNDLE_ITEMS} listings", field="listing_ids",
        )
    await ensure_profile(db, user)

    result = await db.execute(select(Listing).where(Listing.id.in_(body.listing_ids)))
    listings = {lst.id: lst for lst in result.scalars().all()}
    for listing_id in body.listing_ids:
        listing = listings.get(listing_id)
        if listing is None or listing.seller_id != user.id:
            raise InvalidRequestError(
                f"Listing '{listing_id}' is not one of your listings", field="listing_ids",
            )
        if listing.status != ListingStatus.ACTIVE.value:
            raise InvalidRequestError(
                f"Listing '{listing_id}' is not active", field="listing_ids",
            )

    pricing = price_bundle(
        [listings[i].seller_price for i in body.listing_ids], body.discount_percentage,
    )
    bundle = Bundle(
        seller_id=user.id,
        title=body.title.strip(),
        description=body.description,
        discount_percentage=body.discount_percentage,
        total_price=pricing.bundle_price,
        items=[
            BundleItem(listing_id=i, listing=listings[i]) for i in body.listing_ids
        ],
    )
    db.add(bundle)
    await db.commit()
    logger.info(
        f"Created bundle {bundle.id} with {len(body.listing_ids)} listings",
        extra={"user_id": str(user.id)},
    )
    return bundle


async def get_bundle(db: AsyncSession, bundle_id: UUID) -> Bundle:
    bundle = await db.get(Bundle, bundle_id)
    if bundle is None:
        raise ResourceNotFoundError("Bundle", str(bundle_id))
    return bundle


async def list_bundles(
    db: AsyncSession, seller_id: UUID | None = None, limit: int = 20, offset: int = 0,
) -> list[Bundle]:
    query = select(Bundle).where(Bundle.status == "active")
    if seller_id:
        query = query.where(Bundle.seller_id == seller_id)
    query = query.order_by(Bundle.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def deactivate_bundle(
    db: AsyncSession, user: CurrentUser, bundle_id: UUID,
) -> Bundle:
    bundle = await get_bundle(db, bundle_id)
    if bundle.seller_id != user.id:
        raise PermissionDeniedError("Not authorized to delete this bundle")
    bundle.status = "inactive"
    await db.commit()
    logger.info(f"Deactivated bundle {bundle.id}", extra={"user_id": str(user.id)})
    return bundle
