"""Onboarding Service — persists a validated seller onboarding submission.

Invariants:
    - Every field error is reported in one 400 (InvalidRequestError.field_errors)
    - Only the last 4 digits of the account number are stored
    - The new bank account becomes the only default account for the user
"""

import logging
from datetime import date

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.onboarding_validation import (
    parse_date_of_birth, validate_onboarding, visible_steps,
)
from marketplace.core.errors import InvalidRequestError
from marketplace.infrastructure.auth import CurrentUser
from marketplace.models.bank_account import BankAccount
from marketplace.schemas.onboarding import OnboardingSubmission
from marketplace.services.profile_service import ensure_profile

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = (
    "business_type", "business_name", "first_name", "last_name",
    "address_line1", "address_line2", "city", "state", "postal_code",
    "country", "phone",
)


async def submit_onboarding(
    db: AsyncSession,
    user: CurrentUser,
    body: OnboardingSubmission,
    today: date | None = None,
) -> dict:
    form = body.normalized()
    errors = validate_onboarding(form.model_dump(), today or date.today())
    if errors:
        raise InvalidRequestError("Onboarding details are invalid", field_errors=errors)

    profile = await ensure_profile(db, user)
    for name in _PROFILE_FIELDS:
        setattr(profile, name, getattr(form, name) or None)
    profile.date_of_birth = parse_date_of_birth(form.date_of_birth)
    profile.onboarding_status = "submitted"

    await db.execute(
        update(BankAccount)
        .where(BankAccount.user_id == user.id)
        .values(is_default=False),
    )
    bank_account = BankAccount(
        user_id=user.id,
        account_holder_name=form.account_holder_name.strip(),
        account_last4=form.account_number[-4:],
        routing_number=form.routing_number,
        account_type=form.account_type,
        country=form.country,
        is_default=True,
    )
    db.add(bank_account)
    await db.commit()
    logger.info("Seller onboarding submitted", extra={"user_id": str(user.id)})
    return {
        "onboarding_status": profile.onboarding_status,
        "bank_account": {
            "id": bank_account.id,
            "account_holder_name": bank_account.account_holder_name,
            "account_last4": bank_account.account_last4,
            "account_type": bank_account.account_type,
            "country": bank_account.country,
            "is_default": bank_account.is_default,
        },
        "steps": [step.id for step in visible_steps(form.business_type)],
    }
