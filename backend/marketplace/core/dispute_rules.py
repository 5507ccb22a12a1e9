"""Dispute Rules — eligibility, admin transitions and SLA classification.

Invariants:
    - Only paid/shipped/delivered orders can be disputed
    - At most one open or in-review dispute per order
    - Reason: stripped, 1..MAX_REASON_LENGTH chars; evidence: <= MAX_EVIDENCE_IMAGES
    - resolved requires a resolution value; partial_refund also needs a refund amount
    - SLA thresholds (hours): > 24 medium, > 72 high, > 96 critical
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from marketplace.core.domain_types import (
    DisputePriority, DisputeResolution, DisputeStatus, DisputeType, OrderStatus, as_utc,
)
from marketplace.core.errors import (
    BusinessRuleError, InvalidRequestError, InvalidStateTransitionError,
)

MAX_REASON_LENGTH = 2000
MAX_EVIDENCE_IMAGES = 5

SLA_RESPONSE_HOURS = 24
SLA_RESOLUTION_HOURS = 72
SLA_CRITICAL_HOURS = 96

DISPUTABLE_ORDER_STATUSES = frozenset({
    OrderStatus.PAID.value, OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value,
})
ACTIVE_DISPUTE_STATUSES = frozenset({
    DisputeStatus.OPEN.value, DisputeStatus.IN_REVIEW.value,
})

DISPUTE_TRANSITIONS: dict[DisputeStatus, frozenset[DisputeStatus]] = {
    DisputeStatus.OPEN: frozenset({
        DisputeStatus.IN_REVIEW, DisputeStatus.RESOLVED, DisputeStatus.CLOSED,
    }),
    DisputeStatus.IN_REVIEW: frozenset({DisputeStatus.RESOLVED, DisputeStatus.CLOSED}),
}


@dataclass
class SlaStats:
    total: int = 0
    breached_response: int = 0
    escalated: int = 0
    critical: int = 0
    priorities: dict[str, str] = field(default_factory=dict)


def normalize_reason(reason: str) -> str:
    value = (reason or "").strip()
    if not value:
        raise InvalidRequestError("Please describe the issue", field="reason")
    if len(value) > MAX_REASON_LENGTH:
        raise InvalidRequestError(
            f"Reason must be at most {MAX_REASON_LENGTH} characters", field="reason",
        )
    return value


def check_dispute_type(value: str) -> DisputeType:
    try:
        return DisputeType(value)
    except ValueError:
        raise InvalidRequestError(f"Unknown dispute type '{value}'", field="dispute_type")


def check_evidence(images: list[str]) -> None:
    if len(images) > MAX_EVIDENCE_IMAGES:
        raise InvalidRequestError(
            f"You can only add up to {MAX_EVIDENCE_IMAGES} photos as evidence",
            field="evidence_urls",
        )


def check_order_disputable(order_status: str) -> None:
    if order_status not in DISPUTABLE_ORDER_STATUSES:
        raise BusinessRuleError(
            f"Orders in status '{order_status}' cannot be disputed", "ORDER_NOT_DISPUTABLE",
        )


def check_admin_update(
    current: str,
    target: DisputeStatus,
    resolution: str | None,
    refund_amount: Decimal | None = None,
) -> None:
    allowed = DISPUTE_TRANSITIONS.get(DisputeStatus(current), frozenset())
    if target not in allowed:
        raise InvalidStateTransitionError("dispute", current, target.value)
    if target == DisputeStatus.RESOLVED:
        if not resolution:
            raise InvalidRequestError(
                "Resolving a dispute requires a resolution", field="resolution",
            )
        try:
            DisputeResolution(resolution)
        except ValueError:
            raise InvalidRequestError(
                f"Unknown resolution '{resolution}'", field="resolution",
            )
        if resolution == DisputeResolution.PARTIAL_REFUND.value and not refund_amount:
            raise InvalidRequestError(
                "A partial refund needs a refund amount", field="refund_amount",
            )


def hours_open(created_at: datetime, now: datetime) -> float:
    return (as_utc(now) - as_utc(created_at)).total_seconds() / 3600


def classify_sla(hours: float) -> DisputePriority:
    if hours > SLA_CRITICAL_HOURS:
        return DisputePriority.CRITICAL
    if hours > SLA_RESOLUTION_HOURS:
        return DisputePriority.HIGH
    if hours > SLA_RESPONSE_HOURS:
        return DisputePriority.MEDIUM
    return DisputePriority.LOW


def summarize_sla(disputes: list[tuple[str, datetime]], now: datetime) -> SlaStats:
    """Classify (dispute_id, created_at) pairs and count SLA breaches. Pure."""
    stats = SlaStats(total=len(disputes))
    for dispute_id, created_at in disputes:
        priority = classify_sla(hours_open(created_at, now))
        stats.priorities[dispute_id] = priority.value
        if priority == DisputePriority.CRITICAL:
            stats.critical += 1
        elif priority == DisputePriority.HIGH:
            stats.escalated += 1
        elif priority == DisputePriority.MEDIUM:
            stats.breached_response += 1
    return stats
