"""Onboarding Schemas — seller onboarding submission.

Invariants:
    - Postcode and sort code are normalized on the way in (format_postcode/format_sort_code)
    - Cross-field rules (age, routing format per country, company name) run in
      core.onboarding_validation so every failing field is reported together
"""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from marketplace.core.onboarding_validation import format_postcode, format_sort_code


class OnboardingSubmission(BaseModel):
    business_type: str = ""
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    date_of_birth: str = ""
    address_line1: str = Field("", max_length=200)
    address_line2: str | None = Field(None, max_length=200)
    city: str = Field("", max_length=100)
    state: str = Field("", max_length=100)
    postal_code: str = Field("", max_length=20)
    country: str = Field("", max_length=2)
    phone: str = Field("", max_length=30)
    business_name: str | None = Field(None, max_length=200)
    ssn_last4: str | None = None
    account_holder_name: str = Field("", max_length=200)
    account_number: str = Field("", max_length=34)
    routing_number: str = Field("", max_length=20)
    account_type: str = ""

    @field_validator("country")
    @classmethod
    def upper_country(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("account_number")
    @classmethod
    def strip_account_number(cls, v: str) -> str:
        return v.replace(" ", "")

    def normalized(self) -> "OnboardingSubmission":
        """Copy with GB formats applied (postcode spacing, hyphenated sort code)."""
        if self.country != "GB":
            return self
        updates = {}
        if self.postal_code:
            updates["postal_code"] = format_postcode(self.postal_code)
        if self.routing_number:
            updates["routing_number"] = format_sort_code(self.routing_number)
        return self.model_copy(update=updates)


class BankAccountResponse(BaseModel):
    id: UUID
    account_holder_name: str
    account_last4: str
    account_type: str
    country: str
    is_default: bool


class OnboardingResponse(BaseModel):
    onboarding_status: Literal["not_started", "submitted"]
    bank_account: BankAccountResponse
    steps: list[str]
