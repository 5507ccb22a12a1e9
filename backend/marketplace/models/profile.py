"""Profile ORM — one row per authenticated user, buyer and seller alike.

Invariants:
    - id equals the auth subject (JWT `sub`), never generated here
    - onboarding_status: not_started -> submitted (set by onboarding submission)
    - payout_account_id / payouts_enabled are read-only here (managed by the payment provider)
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import Boolean, Date, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from marketplace.db.base import Base


class Profile(Base):
    """Public profile plus seller onboarding fields."""
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(120), nullable=True)

    membership_tier: Mapped[str] = mapped_column(
        String(10), nullable=False, default="free",
    )
    promo_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    risk_tier: Mapped[str] = mapped_column(String(1), nullable=False, default="A")

    payout_account_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    payouts_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )

    # Seller onboarding
    onboarding_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="not_started",
    )
    business_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    business_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    address_line1: Mapped[str | None] = mapped_column(String(200), nullable=True)
    address_line2: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(2), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
