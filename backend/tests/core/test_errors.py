"""Error Hierarchy — tests for error codes, statuses and response envelopes.

Tests cover:
    - PayloadValidationError renders field-level details {field, message, type}
    - StoreAccessError is a DatabaseError with its own code (distinct from not-unique)
    - DescriptorConfigError names the payload type and field
"""

from app.core.errors import (
    ConcurrencyError, DatabaseError, DescriptorConfigError, ErrorCategory,
    FieldFailure, PayloadValidationError, ResourceNotFoundError, StoreAccessError,
)


def test_payload_validation_error_renders_details():
    exc = PayloadValidationError([FieldFailure("name", "value unavailable")])
    body = exc.to_response()
    assert exc.http_status == 400
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"] == [
        {"field": "name", "message": "value unavailable", "type": "unique"},
    ]


def test_store_access_error_is_distinct_database_error():
    exc = StoreAccessError("connection refused", "Account")
    assert isinstance(exc, DatabaseError)
    assert not isinstance(exc, PayloadValidationError)
    assert exc.code == "STORE_ACCESS_ERROR"
    assert exc.http_status == 503
    assert exc.category == ErrorCategory.DATABASE
    assert exc.entity == "Account"


def test_store_access_error_hides_internal_message():
    body = StoreAccessError("password auth failed for user x", "Account").to_response()
    assert body["error"]["message"] == "Uniqueness could not be verified"
    assert body["error"]["context"]["entity"] == "Account"


def test_descriptor_config_error_names_field():
    exc = DescriptorConfigError("declared twice", "AccountCreate", "email")
    assert str(exc) == "AccountCreate.email: declared twice"
    assert exc.category == ErrorCategory.CONFIGURATION
    assert exc.context.field == "email"


def test_not_found_and_conflict_statuses():
    assert ResourceNotFoundError("Account", "x").http_status == 404
    assert ConcurrencyError("raced").http_status == 409
