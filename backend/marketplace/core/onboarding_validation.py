"""Seller Onboarding Validation — field formats, age gate and wizard steps.

Invariants:
    - validate_onboarding is PURE: `today` is injected, never read from the clock
    - is_of_age: born exactly `minimum` years before today passes, one day later fails
    - A 29 February birthday matures on 1 March in non-leap years
    - GB requires a sort code (XX-XX-XX); US requires a 9-digit routing number
    - Companies require business_name

Design Decisions:
    - Returns every field error at once (list), not first-failure; the form shows all
    - The wizard is a fixed list of steps; only the business step is conditional
"""

import re
from dataclasses import dataclass
from datetime import date

MINIMUM_SELLER_AGE = 18

UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9][A-Z0-9]? ?[0-9][A-Z]{2}$", re.IGNORECASE)
SORT_CODE_RE = re.compile(r"^\d{2}-\d{2}-\d{2}$")
US_ROUTING_RE = re.compile(r"^\d{9}$")
DATE_OF_BIRTH_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

BUSINESS_TYPES = ("individual", "company")
ACCOUNT_TYPES = ("checking", "savings")

REQUIRED_FIELDS = (
    ("first_name", "First name is required"),
    ("last_name", "Last name is required"),
    ("address_line1", "Address is required"),
    ("city", "City is required"),
    ("state", "State/Province is required"),
    ("postal_code", "Postal code is required"),
    ("country", "Country is required"),
    ("phone", "Phone number is required"),
    ("account_holder_name", "Account holder name is required"),
    ("account_number", "Account number is required"),
    ("routing_number", "Routing number is required"),
)


@dataclass(frozen=True)
class WizardStep:
    id: str
    title: str


STEPS: tuple[WizardStep, ...] = (
    WizardStep("business-type", "Business Type"),
    WizardStep("personal", "Personal Information"),
    WizardStep("business", "Business Details"),
    WizardStep("payout", "Payout Details"),
    WizardStep("review", "Review & Submit"),
)


def visible_steps(business_type: str | None) -> list[WizardStep]:
    """Business details are only asked of companies."""
    if business_type == "company":
        return list(STEPS)
    return [s for s in STEPS if s.id != "business"]


# ─── Formatting ──────────────────────────────────────────────────

def format_postcode(raw: str) -> str:
    """Uppercase, strip junk, and insert the inward-code space when missing."""
    value = re.sub(r"[^A-Z0-9\s]", "", raw.upper()).strip()
    if 3 < len(value) <= 6 and " " not in value:
        value = f"{value[:-3]} {value[-3:]}"
    return value


def format_sort_code(raw: str) -> str:
    digits = re.sub(r"\D", "", raw)[:6]
    return "-".join(digits[i:i + 2] for i in range(0, len(digits), 2))


def is_valid_uk_postcode(value: str) -> bool:
    return bool(UK_POSTCODE_RE.match(value.strip()))


def is_valid_sort_code(value: str) -> bool:
    return bool(SORT_CODE_RE.match(value))


def is_valid_us_routing_number(value: str) -> bool:
    return bool(US_ROUTING_RE.match(value))


# ─── Age gate ────────────────────────────────────────────────────

def parse_date_of_birth(value: str) -> date | None:
    """Parse YYYY-MM-DD; None when malformed or not a real date."""
    if not DATE_OF_BIRTH_RE.match(value or ""):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def age_on(date_of_birth: date, today: date) -> int:
    """Completed years. Feb 29 birthdays count from Mar 1 in non-leap years."""
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def is_of_age(
    date_of_birth: date, today: date, minimum: int = MINIMUM_SELLER_AGE,
) -> bool:
    return age_on(date_of_birth, today) >= minimum


# ─── Whole-form validation ───────────────────────────────────────

def _error(field: str, message: str) -> dict[str, str]:
    return {"field": field, "message": message}


def validate_onboarding(form: dict, today: date) -> list[dict[str, str]]:
    """Validate a complete onboarding submission. Empty list means valid."""
    errors: list[dict[str, str]] = []

    if form.get("business_type") not in BUSINESS_TYPES:
        errors.append(_error("business_type", "Please select a business type"))

    for field, message in REQUIRED_FIELDS:
        if not str(form.get(field) or "").strip():
            errors.append(_error(field, message))

    dob = parse_date_of_birth(form.get("date_of_birth") or "")
    if dob is None:
        errors.append(_error(
            "date_of_birth", "Date of birth must be in YYYY-MM-DD format",
        ))
    elif not is_of_age(dob, today):
        errors.append(_error(
            "date_of_birth", f"You must be at least {MINIMUM_SELLER_AGE} years old",
        ))

    country = str(form.get("country") or "").upper()
    postal_code = str(form.get("postal_code") or "")
    if country == "GB" and postal_code and not is_valid_uk_postcode(postal_code):
        errors.append(_error("postal_code", "Invalid UK postcode (e.g. SW1A 1AA)"))

    if form.get("business_type") == "company" and not form.get("business_name"):
        errors.append(_error("business_name", "Business name is required for companies"))

    routing = str(form.get("routing_number") or "")
    if routing:
        if country == "GB" and not is_valid_sort_code(routing):
            errors.append(_error(
                "routing_number", "Invalid routing number format for selected country",
            ))
        elif country == "US" and not is_valid_us_routing_number(routing):
            errors.append(_error(
                "routing_number", "Invalid routing number format for selected country",
            ))

    ssn = form.get("ssn_last4")
    if ssn and not re.fullmatch(r"\d{4}", ssn):
        errors.append(_error("ssn_last4", "SSN last 4 digits must be 4 numbers"))

    if form.get("account_type") not in ACCOUNT_TYPES:
        errors.append(_error("account_type", "Please select an account type"))

    return errors
