"""Listing Routes — listing CRUD, search, image upload and variant sales.

Invariants:
    - Reads are public; writes require a bearer token
    - Status filter defaults to active
"""

from decimal import Decimal
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user
from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.object_storage import ObjectStorage, get_object_storage
from marketplace.schemas.listing import (
    ListingCreate, ListingImageResponse, ListingPage, ListingResponse,
    ListingUpdate, VariantSaleResponse,
)
from marketplace.services import listing_service

router = APIRouter(prefix="/api/v1/listings", tags=["listings"])


@router.post(
    "", response_model=ListingResponse, status_code=status.HTTP_201_CREATED,
)
async def create_listing(
    body: ListingCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await listing_service.create_listing(db, user, body)


@router.get("", response_model=ListingPage)
async def list_listings(
    q: str | None = Query(None, max_length=200),
    set_name: str | None = Query(None, max_length=200),
    condition: str | None = Query(None, max_length=30),
    min_price: Decimal | None = Query(None, ge=0),
    max_price: Decimal | None = Query(None, ge=0),
    seller_id: UUID | None = None,
    status_filter: Literal["draft", "active", "reserved", "sold", "removed"] = Query(
        "active", alias="status",
    ),
    sort: Literal["newest", "price_asc", "price_desc"] = "newest",
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    listings = await listing_service.list_listings(
        db,
        q=q,
        set_name=set_name,
        condition=condition,
        min_price=min_price,
        max_price=max_price,
        seller_id=seller_id,
        status=status_filter,
        sort=sort,
        limit=limit,
        offset=offset,
    )
    return {"listings": listings, "limit": limit, "offset": offset}


@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(listing_id: UUID, db: AsyncSession = Depends(get_db)):
    return await listing_service.get_listing(db, listing_id)


@router.patch("/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: UUID,
    body: ListingUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await listing_service.update_listing(db, user, listing_id, body)


@router.delete("/{listing_id}", response_model=ListingResponse)
async def remove_listing(
    listing_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await listing_service.remove_listing(db, user, listing_id)


@router.post(
    "/{listing_id}/images",
    response_model=ListingImageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_listing_image(
    listing_id: UUID,
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    data = await file.read()
    return await listing_service.add_listing_image(
        db, storage, user, listing_id,
        file_name=file.filename or "",
        content_type=file.content_type,
        data=data,
    )


@router.post(
    "/{listing_id}/variants/{variant_id}/sell", response_model=VariantSaleResponse,
)
async def sell_variant(
    listing_id: UUID,
    variant_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark a variant sold and reprice the remaining bundle."""
    return await listing_service.sell_variant(db, user, listing_id, variant_id)
