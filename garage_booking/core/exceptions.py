# garage_booking/core/exceptions.py
"""
Domain exceptions for the garage booking engine.

Services raise these; routes turn them into HTTP problem responses through
``to_http_exception``. Each class fixes its own status code.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)

INVALID_DATA_MESSAGE = "The given data was invalid."


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """
    Raised when business validation fails.

    Field-scoped problems are carried in ``details["errors"]`` keyed by the
    request field path, e.g. ``booking_sub_service_ids[2]``.
    """

    status_code = HTTP_422_UNPROCESSABLE

    @classmethod
    def for_field(
        cls, field: str, message: str, *, code: str = "VALIDATION_FAILED"
    ) -> "ValidationException":
        return cls(
            INVALID_DATA_MESSAGE,
            code=code,
            details={"errors": {field: [message]}},
        )

    @property
    def errors(self) -> Dict[str, List[str]]:
        return dict(self.details.get("errors") or {})


class NotFoundException(DomainException):
    """Raised when a requested resource is not found (including other tenants' rows)."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = HTTP_422_UNPROCESSABLE


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class UnauthorizedException(DomainException):
    """Raised when the caller may not perform the action."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class SlotConflictException(ConflictException):
    """Raised when proposed slots overlap slots already held by another booking."""

    def __init__(
        self,
        overlapping_slots: List[Dict[str, Any]],
        message: Optional[str] = None,
    ):
        super().__init__(
            message=message or "Some slots are already booked.",
            code="SLOT_CONFLICT",
            details={"overlapping_slots": overlapping_slots},
        )

    @property
    def overlapping_slots(self) -> List[Dict[str, Any]]:
        return list(self.details.get("overlapping_slots") or [])


class SlotLockTimeoutException(ConflictException):
    """Raised when another request holds the slot lock for too long."""

    def __init__(self, lock_key: str, waited_seconds: float):
        super().__init__(
            message="Another booking for this expert and date is being saved. Please try again.",
            code="SLOT_LOCK_BUSY",
            details={"lock_key": lock_key, "waited_seconds": round(waited_seconds, 3)},
        )


class StateConflictException(BusinessRuleException):
    """Raised when a booking that was converted to a job is mutated."""

    def __init__(self, booking_id: str, message: Optional[str] = None):
        super().__init__(
            message=message
            or "Status cannot be updated because it is 'converted_to_job'",
            code="BOOKING_CONVERTED_TO_JOB",
            details={"booking_id": booking_id},
        )


class InvariantViolationException(ServiceException):
    """Raised for configuration defects, e.g. a missing notification template."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVARIANT_VIOLATION", details=details)


class RepositoryException(Exception):
    """Data access failure raised by repositories."""
