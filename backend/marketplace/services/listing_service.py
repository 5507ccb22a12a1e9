"""Listing Service — listing CRUD, search, images and variant sales.

Invariants:
    - Only the seller edits, removes, adds images to, or sells variants of a listing
    - Sold and removed listings are read-only
    - At most MAX_LISTING_IMAGES images; display_order is append-only
    - Variant bundles are priced through core.bundle_pricing at creation and after each sale

Design Decisions:
    - DELETE is a soft remove (status="removed"): orders and offers keep their reference
"""

import logging
from decimal import Decimal
from typing import Literal
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import get_settings
from marketplace.core.bundle_pricing import (
    VariantSnapshot, price_bundle, reprice_after_variant_sale,
)
from marketplace.core.domain_types import BundleType, ListingStatus, to_money
from marketplace.core.errors import (
    BusinessRuleError, InvalidRequestError, PermissionDeniedError,
    ResourceNotFoundError,
)
from marketplace.infrastructure.auth import CurrentUser
from marketplace.infrastructure.object_storage import ObjectStorage, make_key
from marketplace.models.listing import Listing, ListingImage, ListingVariant
from marketplace.schemas.listing import ListingCreate, ListingUpdate
from marketplace.services.profile_service import ensure_profile

logger = logging.getLogger(__name__)

MAX_LISTING_IMAGES = 10
READ_ONLY_STATUSES = (ListingStatus.SOLD.value, ListingStatus.REMOVED.value)

SortOrder = Literal["newest", "price_asc", "price_desc"]


async def get_listing(db: AsyncSession, listing_id: UUID) -> Listing:
    listing = await db.get(Listing, listing_id)
    if listing is None:
        raise ResourceNotFoundError("Listing", str(listing_id))
    return listing


async def _get_owned_listing(
    db: AsyncSession, user: CurrentUser, listing_id: UUID,
) -> Listing:
    listing = await get_listing(db, listing_id)
    if listing.seller_id != user.id:
        raise PermissionDeniedError("Not authorized to modify this listing")
    return listing


def _initial_bundle_price(body: ListingCreate) -> Decimal | None:
    prices = [v.variant_price for v in body.variants]
    if body.bundle_type == BundleType.BUNDLE_WITH_DISCOUNT.value:
        return price_bundle(prices, body.bundle_discount_percentage or Decimal("0")).bundle_price
    if body.bundle_type == BundleType.VARIANTS_ONLY.value:
        return price_bundle(prices, Decimal("0")).bundle_price
    return None


async def create_listing(
    db: AsyncSession, user: CurrentUser, body: ListingCreate,
) -> Listing:
    if body.bundle_type and len(body.variants) < 2:
        raise InvalidRequestError(
            "A bundle listing needs at least two variants", field="variants",
        )
    if body.bundle_type == BundleType.BUNDLE_WITH_DISCOUNT.value and not body.bundle_discount_percentage:
        raise InvalidRequestError(
            "A discounted bundle needs a discount percentage",
            field="bundle_discount_percentage",
        )
    await ensure_profile(db, user)

    bundle_price = _initial_bundle_price(body)
    listing = Listing(
        seller_id=user.id,
        title=body.title,
        description=body.description,
        card_name=body.card_name,
        set_name=body.set_name,
        card_number=body.card_number,
        condition=body.condition,
        seller_price=to_money(body.seller_price),
        currency=body.currency,
        status=body.status,
        free_shipping=body.free_shipping,
        shipping_cost_uk=body.shipping_cost_uk,
        shipping_cost_europe=body.shipping_cost_europe,
        shipping_cost_international=body.shipping_cost_international,
        has_variants=bool(body.variants),
        bundle_type=body.bundle_type,
        bundle_price=bundle_price,
        bundle_discount_percentage=(
            body.bundle_discount_percentage
            if body.bundle_type == BundleType.BUNDLE_WITH_DISCOUNT.value else None
        ),
        remaining_bundle_price=bundle_price,
        images=[],
        variants=[
            ListingVariant(
                variant_name=v.variant_name,
                variant_price=to_money(v.variant_price),
                variant_quantity=v.variant_quantity,
            )
            for v in body.variants
        ],
    )
    db.add(listing)
    await db.commit()
    logger.info(
        f"Created listing {listing.id}",
        extra={"user_id": str(user.id), "listing_id": str(listing.id)},
    )
    return listing


async def list_listings(
    db: AsyncSession,
    *,
    q: str | None = None,
    set_name: str | None = None,
    condition: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    seller_id: UUID | None = None,
    status: str = ListingStatus.ACTIVE.value,
    sort: SortOrder = "newest",
    limit: int = 20,
    offset: int = 0,
) -> list[Listing]:
    query = select(Listing).where(Listing.status == status)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.where(or_(
            Listing.title.ilike(pattern), Listing.card_name.ilike(pattern),
        ))
    if set_name:
        query = query.where(Listing.set_name.ilike(f"%{set_name.strip()}%"))
    if condition:
        query = query.where(Listing.condition == condition)
    if min_price is not None:
        query = query.where(Listing.seller_price >= min_price)
    if max_price is not None:
        query = query.where(Listing.seller_price <= max_price)
    if seller_id:
        query = query.where(Listing.seller_id == seller_id)

    if sort == "price_asc":
        query = query.order_by(Listing.seller_price.asc(), Listing.created_at.desc())
    elif sort == "price_desc":
        query = query.order_by(Listing.seller_price.desc(), Listing.created_at.desc())
    else:
        query = query.order_by(Listing.created_at.desc())

    result = await db.execute(query.limit(limit).offset(offset))
    return list(result.scalars().all())


async def update_listing(
    db: AsyncSession, user: CurrentUser, listing_id: UUID, body: ListingUpdate,
) -> Listing:
    listing = await _get_owned_listing(db, user, listing_id)
    if listing.status in READ_ONLY_STATUSES:
        raise BusinessRuleError(
            f"A {listing.status} listing cannot be edited", "LISTING_NOT_EDITABLE",
        )
    for name, value in body.model_dump(exclude_unset=True).items():
        setattr(listing, name, value)
    await db.commit()
    logger.info(
        f"Updated listing {listing.id}",
        extra={"user_id": str(user.id), "listing_id": str(listing.id)},
    )
    return listing


async def remove_listing(
    db: AsyncSession, user: CurrentUser, listing_id: UUID,
) -> Listing:
    listing = await _get_owned_listing(db, user, listing_id)
    if listing.status == ListingStatus.SOLD.value:
        raise BusinessRuleError("A sold listing cannot be removed", "LISTING_NOT_EDITABLE")
    listing.status = ListingStatus.REMOVED.value
    await db.commit()
    logger.info(
        f"Removed listing {listing.id}",
        extra={"user_id": str(user.id), "listing_id": str(listing.id)},
    )
    return listing


async def add_listing_image(
    db: AsyncSession,
    storage: ObjectStorage,
    user: CurrentUser,
    listing_id: UUID,
    *,
    file_name: str,
    content_type: str | None,
    data: bytes,
) -> ListingImage:
    listing = await _get_owned_listing(db, user, listing_id)
    if listing.status in READ_ONLY_STATUSES:
        raise BusinessRuleError(
            f"A {listing.status} listing cannot be edited", "LISTING_NOT_EDITABLE",
        )
    if not (content_type or "").startswith("image/"):
        raise InvalidRequestError("Only image uploads are accepted", field="file")
    if not data:
        raise InvalidRequestError("Uploaded file is empty", field="file")
    if len(listing.images) >= MAX_LISTING_IMAGES:
        raise BusinessRuleError(
            f"A listing can have at most {MAX_LISTING_IMAGES} images", "TOO_MANY_IMAGES",
        )

    bucket = get_settings().listing_images_bucket
    stored = await storage.upload(
        bucket, make_key("listings", str(user.id), file_name), data, content_type,
    )
    next_order = max((img.display_order for img in listing.images), default=-1) + 1
    image = ListingImage(
        listing_id=listing.id,
        image_url=stored.public_url,
        storage_key=stored.key,
        display_order=next_order,
    )
    db.add(image)
    await db.commit()
    logger.info(
        f"Added image {image.id} to listing {listing.id}",
        extra={"user_id": str(user.id), "listing_id": str(listing.id)},
    )
    return image


async def sell_variant(
    db: AsyncSession, user: CurrentUser, listing_id: UUID, variant_id: UUID,
) -> dict:
    """Mark one variant sold and reprice the remaining bundle."""
    listing = await _get_owned_listing(db, user, listing_id)
    variant = next((v for v in listing.variants if v.id == variant_id), None)
    if variant is None:
        raise ResourceNotFoundError("Listing variant", str(variant_id))
    if variant.is_sold:
        raise BusinessRuleError("Variant already sold", "VARIANT_SOLD")

    variant.is_sold = True
    variant.is_available = False
    variant.variant_quantity = max(variant.variant_quantity - 1, 0)

    if listing.has_variants and listing.bundle_type:
        repricing = reprice_after_variant_sale(
            listing.bundle_type,
            listing.bundle_discount_percentage,
            [
                VariantSnapshot(
                    price=v.variant_price,
                    quantity=v.variant_quantity,
                    is_available=v.is_available,
                    is_sold=v.is_sold,
                )
                for v in listing.variants
            ],
            listing.bundle_price,
            listing.bundle_discount_percentage,
        )
        listing.remaining_bundle_price = repricing.remaining_bundle_price
        if repricing.mark_sold:
            listing.status = ListingStatus.SOLD.value
        if repricing.new_bundle_price is not None:
            listing.bundle_price = repricing.new_bundle_price
        if repricing.new_discount_percentage is not None:
            listing.bundle_discount_percentage = repricing.new_discount_percentage
        remaining = repricing.remaining_variants
    else:
        remaining = sum(1 for v in listing.variants if not v.is_sold)
        if remaining == 0:
            listing.status = ListingStatus.SOLD.value

    await db.commit()
    logger.info(
        f"Sold variant {variant_id} of listing {listing.id}",
        extra={"user_id": str(user.id), "listing_id": str(listing.id)},
    )
    return {
        "listing_id": listing.id,
        "variant_id": variant.id,
        "listing_status": listing.status,
        "remaining_variants": remaining,
        "remaining_bundle_price": listing.remaining_bundle_price,
        "bundle_price": listing.bundle_price,
        "bundle_discount_percentage": listing.bundle_discount_percentage,
    }
