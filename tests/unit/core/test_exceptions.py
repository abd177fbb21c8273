from garage_booking.core.exceptions import (
    INVALID_DATA_MESSAGE,
    InvariantViolationException,
    NotFoundException,
    SlotConflictException,
    StateConflictException,
    UnauthorizedException,
    ValidationException,
)


def test_status_codes():
    assert UnauthorizedException("x").status_code == 401
    assert NotFoundException("x").status_code == 404
    assert ValidationException("x").status_code == 422
    assert SlotConflictException([]).status_code == 422
    assert StateConflictException("b1").status_code == 422
    assert InvariantViolationException("x").to_http_exception().status_code == 500


def test_field_validation_error_shape():
    exc = ValidationException.for_field("booking_sub_service_ids[2]", "invalid service")

    assert exc.message == INVALID_DATA_MESSAGE
    assert exc.errors == {"booking_sub_service_ids[2]": ["invalid service"]}
    assert exc.to_http_exception().detail["details"] == {
        "errors": {"booking_sub_service_ids[2]": ["invalid service"]}
    }


def test_state_conflict_message():
    exc = StateConflictException("b1")
    assert "converted_to_job" in exc.message
    assert exc.details == {"booking_id": "b1"}
