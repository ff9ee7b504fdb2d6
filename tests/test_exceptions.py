"""Tests for the error taxonomy (kind, code, response shape)."""

from pickup_api.exceptions import (
    AdminEmailInUseError,
    DatabaseError,
    InvalidIdError,
    PickupLocationNotFoundError,
    UserNotFoundError,
    ValidationFailedError,
)


def test_default_message_and_code() -> None:
    exc = PickupLocationNotFoundError()
    assert exc.kind == "not_found"
    assert exc.code == "PICKUP_LOCATION_NOT_FOUND"
    assert exc.message == "Pickup location not found"


def test_code_override() -> None:
    exc = UserNotFoundError("Admin user not found", code="ADMIN_USER_NOT_FOUND")
    assert exc.code == "ADMIN_USER_NOT_FOUND"
    # class default untouched
    assert UserNotFoundError.code == "USER_NOT_FOUND"


def test_to_response_shape() -> None:
    assert AdminEmailInUseError().to_response() == {
        "success": False,
        "error": {
            "code": "ADMIN_EMAIL_IN_USE",
            "message": "A user with this email already exists",
        },
    }


def test_invalid_id_names_field() -> None:
    exc = InvalidIdError("regionId")
    assert exc.field_name == "regionId"
    assert "regionId" in exc.message
    assert exc.code == "INVALID_ID_FORMAT"


def test_validation_and_database_kinds() -> None:
    assert ValidationFailedError().kind == "validation"
    original = RuntimeError("boom")
    exc = DatabaseError(original_exception=original)
    assert exc.kind == "database"
    assert exc.original_exception is original
