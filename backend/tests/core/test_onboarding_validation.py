"""Seller Onboarding Validation — formats, age gate, wizard steps and full-form checks."""

from datetime import date

from marketplace.core.onboarding_validation import (
    age_on, format_postcode, format_sort_code, is_of_age, is_valid_uk_postcode,
    parse_date_of_birth, validate_onboarding, visible_steps,
)

TODAY = date(2026, 6, 15)


def _form(**overrides) -> dict:
    form = {
        "business_type": "individual",
        "first_name": "Ash",
        "last_name": "Ketchum",
        "date_of_birth": "1990-05-22",
        "address_line1": "1 Pallet Road",
        "city": "London",
        "state": "Greater London",
        "postal_code": "SW1A 1AA",
        "country": "GB",
        "phone": "+447700900000",
        "account_holder_name": "Ash Ketchum",
        "account_number": "12345678",
        "routing_number": "12-34-56",
        "account_type": "checking",
    }
    form.update(overrides)
    return form


def _fields(errors: list[dict]) -> set[str]:
    return {e["field"] for e in errors}


# --- Age gate -----------------------------------------------------------------

def test_eighteenth_birthday_today_is_of_age():
    assert is_of_age(date(2008, 6, 15), TODAY)


def test_one_day_short_of_eighteen_is_not_of_age():
    assert not is_of_age(date(2008, 6, 16), TODAY)


def test_leap_day_birthday_matures_on_first_of_march():
    born = date(2000, 2, 29)
    assert age_on(born, date(2018, 2, 28)) == 17
    assert age_on(born, date(2018, 3, 1)) == 18


def test_parse_date_of_birth_rejects_bad_input():
    assert parse_date_of_birth("2001-02-30") is None
    assert parse_date_of_birth("22/05/1990") is None
    assert parse_date_of_birth("1990-05-22") == date(1990, 5, 22)


# --- Formatting ---------------------------------------------------------------

def test_format_postcode_uppercases_and_keeps_space():
    assert format_postcode("sw1a 1aa") == "SW1A 1AA"


def test_format_postcode_inserts_space_for_short_codes():
    assert format_postcode("m11ae") == "M1 1AE"


def test_format_sort_code_hyphenates_digits():
    assert format_sort_code("123456") == "12-34-56"
    assert format_sort_code("12 34 56 78") == "12-34-56"


def test_uk_postcode_pattern():
    assert is_valid_uk_postcode("SW1A 1AA")
    assert is_valid_uk_postcode("m1 1ae")
    assert not is_valid_uk_postcode("12345")


# --- Whole form ---------------------------------------------------------------

def test_valid_form_has_no_errors():
    assert validate_onboarding(_form(), TODAY) == []


def test_missing_fields_are_all_reported():
    errors = validate_onboarding(_form(first_name="", city=" ", phone=""), TODAY)
    assert {"first_name", "city", "phone"} <= _fields(errors)


def test_underage_seller_rejected():
    errors = validate_onboarding(_form(date_of_birth="2010-01-01"), TODAY)
    assert _fields(errors) == {"date_of_birth"}


def test_gb_requires_sort_code_format():
    errors = validate_onboarding(_form(routing_number="123456789"), TODAY)
    assert _fields(errors) == {"routing_number"}


def test_us_requires_nine_digit_routing_number():
    form = _form(country="US", postal_code="10001", routing_number="12-34-56")
    assert _fields(validate_onboarding(form, TODAY)) == {"routing_number"}
    form["routing_number"] = "021000021"
    assert validate_onboarding(form, TODAY) == []


def test_company_requires_business_name():
    errors = validate_onboarding(_form(business_type="company"), TODAY)
    assert _fields(errors) == {"business_name"}


def test_invalid_gb_postcode_and_account_type():
    errors = validate_onboarding(_form(postal_code="NOPE", account_type="bitcoin"), TODAY)
    assert _fields(errors) == {"postal_code", "account_type"}


def test_ssn_last4_must_be_four_digits():
    errors = validate_onboarding(_form(ssn_last4="12a4"), TODAY)
    assert _fields(errors) == {"ssn_last4"}


def test_business_step_only_for_companies():
    assert "business" not in [s.id for s in visible_steps("individual")]
    assert [s.id for s in visible_steps("company")] == [
        "business-type", "personal", "business", "payout", "review",
    ]
