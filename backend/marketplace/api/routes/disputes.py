"""Dispute Routes — buyer disputes, evidence upload, admin resolution and SLA sweep."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.infrastructure.auth import CurrentUser, get_current_user, require_admin
from marketplace.infrastructure.database import get_db
from marketplace.infrastructure.object_storage import ObjectStorage, get_object_storage
from marketplace.infrastructure.payment_gateway import PaymentGateway, get_payment_gateway
from marketplace.schemas.dispute import (
    DisputeCreate, DisputeResponse, DisputeUpdate, EvidenceUploadResponse,
    SlaCheckResponse,
)
from marketplace.services import dispute_service

router = APIRouter(prefix="/api/v1/disputes", tags=["disputes"])


@router.post("", response_model=DisputeResponse, status_code=status.HTTP_201_CREATED)
async def create_dispute(
    body: DisputeCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await dispute_service.create_dispute(
        db, user, body.order_id, body.dispute_type, body.reason, body.evidence_urls,
    )


@router.post(
    "/evidence", response_model=EvidenceUploadResponse, status_code=status.HTTP_201_CREATED,
)
async def upload_evidence(
    file: UploadFile = File(...),
    user: CurrentUser = Depends(get_current_user),
    storage: ObjectStorage = Depends(get_object_storage),
):
    stored = await dispute_service.upload_evidence(
        storage, user,
        file_name=file.filename or "",
        content_type=file.content_type,
        data=await file.read(),
    )
    return {"url": stored.public_url, "key": stored.key}


@router.post("/sla-check", response_model=SlaCheckResponse)
async def sla_check(
    _: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stats = await dispute_service.run_sla_check(db)
    return {
        "total": stats.total,
        "breached_response": stats.breached_response,
        "escalated": stats.escalated,
        "critical": stats.critical,
    }


@router.get("", response_model=list[DisputeResponse])
async def list_disputes(
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await dispute_service.list_disputes(db, user, status_filter, limit, offset)


@router.get("/{dispute_id}", response_model=DisputeResponse)
async def get_dispute(
    dispute_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await dispute_service.get_dispute(db, user, dispute_id)


@router.patch("/{dispute_id}", response_model=DisputeResponse)
async def update_dispute(
    dispute_id: UUID,
    body: DisputeUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    return await dispute_service.admin_update(db, gateway, admin, dispute_id, body)
