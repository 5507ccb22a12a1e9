"""Error Hierarchy — response envelope and HTTP status mapping."""

from marketplace.core.errors import (
    BusinessRuleError, DatabaseError, InvalidRequestError, ResourceNotFoundError,
)


def test_not_found_carries_resource_id():
    err = ResourceNotFoundError("Listing", "abc")
    body = err.to_response()["error"]
    assert err.http_status == 404
    assert body["code"] == "RESOURCE_NOT_FOUND"
    assert body["context"]["resource_id"] == "abc"


def test_single_field_error_becomes_details():
    body = InvalidRequestError("bad", field="amount").to_response()["error"]
    assert body["details"] == [{"field": "amount", "message": "bad"}]


def test_field_errors_list_preserved():
    errors = [{"field": "a", "message": "x"}, {"field": "b", "message": "y"}]
    body = InvalidRequestError("bad", field_errors=errors).to_response()["error"]
    assert body["details"] == errors


def test_business_rule_code_is_custom():
    err = BusinessRuleError("Listing not active", "LISTING_NOT_ACTIVE")
    assert err.code == "LISTING_NOT_ACTIVE"
    assert err.http_status == 400


def test_database_error_is_server_side():
    err = DatabaseError("timeout", "query")
    assert err.http_status == 503
    assert err.to_response()["error"]["severity"] == "critical"
