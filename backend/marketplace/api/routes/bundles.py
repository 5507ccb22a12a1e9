"""Bundle Routes — create, browse and deactivate multi-listing bundles."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user
from marketplace.infrastructure.database import get_db
from marketplace.schemas.bundle import BundleCreate, BundleResponse
from marketplace.services import bundle_service

router = APIRouter(prefix="/api/v1/bundles", tags=["bundles"])


@router.post("", response_model=BundleResponse, status_code=status.HTTP_201_CREATED)
async def create_bundle(
    body: BundleCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bundle = await bundle_service.create_bundle(db, user, body)
    return bundle_service.bundle_view(bundle)


@router.get("", response_model=list[BundleResponse])
async def list_bundles(
    seller_id: UUID | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    bundles = await bundle_service.list_bundles(db, seller_id, limit, offset)
    return [bundle_service.bundle_view(b) for b in bundles]


@router.get("/{bundle_id}", response_model=BundleResponse)
async def get_bundle(bundle_id: UUID, db: AsyncSession = Depends(get_db)):
    bundle = await bundle_service.get_bundle(db, bundle_id)
    return bundle_service.bundle_view(bundle)


@router.delete("/{bundle_id}", response_model=BundleResponse)
async def delete_bundle(
    bundle_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    bundle = await bundle_service.deactivate_bundle(db, user, bundle_id)
    return bundle_service.bundle_view(bundle)
