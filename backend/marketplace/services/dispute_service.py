"""Dispute Service — buyer disputes, evidence uploads, admin resolution and SLA sweep.

Invariants:
    - Only an order's buyer opens a dispute, and only for paid/shipped/delivered orders
    - One open/in_review dispute per order (DuplicateResourceError otherwise)
    - Parties see their own disputes; admins see all
    - The SLA sweep rewrites priority on every open/in_review dispute
    - refund_buyer and partial_refund resolutions refund the order before the dispute closes
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.config import get_settings
from marketplace.core.dispute_rules import (
    ACTIVE_DISPUTE_STATUSES, SlaStats, check_admin_update, check_dispute_type,
    check_evidence, check_order_disputable, normalize_reason, summarize_sla,
)
from marketplace.core.domain_types import (
    DisputeResolution, DisputeStatus, RefundType, utcnow,
)
from marketplace.core.errors import (
    DuplicateResourceError, InvalidRequestError, PermissionDeniedError,
    ResourceNotFoundError,
)
from marketplace.infrastructure.auth import CurrentUser
from marketplace.infrastructure.object_storage import ObjectStorage, StoredObject, make_key
from marketplace.infrastructure.payment_gateway import PaymentGateway
from marketplace.models.dispute import Dispute
from marketplace.models.order import Order
from marketplace.schemas.dispute import DisputeUpdate
from marketplace.services.order_service import apply_refund

logger = logging.getLogger(__name__)


async def create_dispute(
    db: AsyncSession,
    user: CurrentUser,
    order_id: UUID,
    dispute_type: str,
    reason: str,
    evidence_urls: list[str],
) -> Dispute:
    kind = check_dispute_type(dispute_type)
    reason = normalize_reason(reason)
    check_evidence(evidence_urls)

    order = await db.get(Order, order_id)
    if order is None:
        raise ResourceNotFoundError("Order", str(order_id))
    if order.buyer_id != user.id:
        raise PermissionDeniedError("Only the buyer can open a dispute for this order")
    check_order_disputable(order.status)

    existing = (await db.execute(
        select(Dispute.id).where(
            Dispute.order_id == order.id,
            Dispute.status.in_(ACTIVE_DISPUTE_STATUSES),
        ),
    )).first()
    if existing:
        raise DuplicateResourceError("An open dispute already exists for this order")

    dispute = Dispute(
        order_id=order.id,
        listing_id=order.listing_id,
        buyer_id=order.buyer_id,
        seller_id=order.seller_id,
        dispute_type=kind.value,
        reason=reason,
        buyer_evidence={"images": evidence_urls} if evidence_urls else None,
        status=DisputeStatus.OPEN.value,
    )
    db.add(dispute)
    await db.commit()
    logger.info(
        f"Opened dispute {dispute.id} ({kind.value})",
        extra={"user_id": str(user.id), "dispute_id": str(dispute.id), "order_id": str(order.id)},
    )
    return dispute


async def upload_evidence(
    storage: ObjectStorage,
    user: CurrentUser,
    *,
    file_name: str,
    content_type: str | None,
    data: bytes,
) -> StoredObject:
    if not (content_type or "").startswith("image/"):
        raise InvalidRequestError("Only image uploads are accepted", field="file")
    if not data:
        raise InvalidRequestError("Uploaded file is empty", field="file")
    bucket = get_settings().dispute_evidence_bucket
    return await storage.upload(
        bucket, make_key("disputes", str(user.id), file_name), data, content_type,
    )


async def get_dispute(db: AsyncSession, user: CurrentUser, dispute_id: UUID) -> Dispute:
    dispute = await db.get(Dispute, dispute_id)
    if dispute is None:
        raise ResourceNotFoundError("Dispute", str(dispute_id))
    if not user.is_admin and user.id not in (dispute.buyer_id, dispute.seller_id):
        raise PermissionDeniedError("Not authorized to view this dispute")
    return dispute


async def list_disputes(
    db: AsyncSession,
    user: CurrentUser,
    status: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> list[Dispute]:
    query = select(Dispute)
    if not user.is_admin:
        query = query.where(or_(Dispute.buyer_id == user.id, Dispute.seller_id == user.id))
    if status:
        query = query.where(Dispute.status == status)
    query = query.order_by(Dispute.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


_REFUNDS = {
    DisputeResolution.REFUND_BUYER.value: RefundType.FULL,
    DisputeResolution.PARTIAL_REFUND.value: RefundType.PARTIAL,
}


async def admin_update(
    db: AsyncSession,
    gateway: PaymentGateway,
    admin: CurrentUser,
    dispute_id: UUID,
    body: DisputeUpdate,
) -> Dispute:
    """Move a dispute along; refund resolutions refund the order in the same commit."""
    dispute = await get_dispute(db, admin, dispute_id)
    target = DisputeStatus(body.status)
    check_admin_update(dispute.status, target, body.resolution, body.refund_amount)
    dispute.status = target.value
    if target == DisputeStatus.RESOLVED:
        dispute.resolution = body.resolution
        dispute.resolved_at = utcnow()
        refund_type = _REFUNDS.get(body.resolution)
        if refund_type is not None:
            order = (await db.execute(
                select(Order).where(Order.id == dispute.order_id).with_for_update(),
            )).scalar_one()
            await apply_refund(
                db, gateway, order, refund_type, body.refund_amount,
                reason=f"Dispute {dispute.id} resolved: {body.resolution}",
            )
    if body.resolution_notes is not None:
        dispute.resolution_notes = body.resolution_notes
    await db.commit()
    logger.info(
        f"Dispute {dispute.id} -> {dispute.status}",
        extra={"user_id": str(admin.id), "dispute_id": str(dispute.id)},
    )
    return dispute


async def run_sla_check(db: AsyncSession, now: datetime | None = None) -> SlaStats:
    now = now or utcnow()
    result = await db.execute(
        select(Dispute).where(Dispute.status.in_(ACTIVE_DISPUTE_STATUSES)),
    )
    disputes = list(result.scalars().all())
    stats = summarize_sla([(str(d.id), d.created_at) for d in disputes], now)
    for dispute in disputes:
        dispute.priority = stats.priorities[str(dispute.id)]
    await db.commit()
    if stats.critical or stats.escalated:
        logger.warning(
            f"Dispute SLA: {stats.critical} critical, {stats.escalated} escalated "
            f"of {stats.total} open",
        )
    else:
        logger.info(f"Dispute SLA check: {stats.total} open, none escalated")
    return stats
