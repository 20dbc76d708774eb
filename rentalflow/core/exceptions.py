"""Custom application exceptions.

Every booking-core error is detectable locally, before an upstream call is
issued. Upstream failures are wrapped in ExternalServiceError and surfaced
as-is.
"""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Validation error exception."""

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class InvalidRange(ValidationError):
    """Rental dates are reversed, empty or in the past."""

    def __init__(self, detail: str = "End date must be after start date") -> None:
        super().__init__(detail=detail)


class AuthenticationError(AppException):
    """Authentication failed exception."""

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFoundError(AppException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Forbidden(AppException):
    """Acting user is not a party to the booking."""

    def __init__(self, detail: str = "You are not a party to this booking") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class IllegalTransition(AppException):
    """Booking state machine violation."""

    def __init__(
        self,
        current: str | None = None,
        trigger: str | None = None,
        actor: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.current = current
        self.trigger = trigger
        self.actor = actor
        if detail is None:
            detail = f"Cannot {trigger} a {current} booking as {actor}"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class RefundRequired(IllegalTransition):
    """Paid bookings leave the lifecycle through the refund path only."""

    def __init__(self, detail: str = "Booking is already paid; request a refund instead of cancelling") -> None:
        super().__init__(current="confirmed", trigger="cancel", detail=detail)


class TerminalState(AppException):
    """Mutation attempted on a cancelled or completed booking."""

    def __init__(self, current: str) -> None:
        self.current = current
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Booking is {current} and can no longer change",
        )


class ItemUnavailable(AppException):
    """Referenced rental item is deleted or not visible to the caller."""

    def __init__(self, item_id: str | None = None) -> None:
        detail = "Rental item is not available"
        if item_id:
            detail = f"Rental item '{item_id}' is not available"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DuplicateReview(AppException):
    """The renter already reviewed this booking."""

    def __init__(self, detail: str = "You have already reviewed this booking") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class PaymentError(AppException):
    """Payment processing error."""

    def __init__(self, detail: str = "Payment processing failed") -> None:
        super().__init__(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=detail)


class ExternalServiceError(AppException):
    """External service error."""

    def __init__(self, service: str, detail: str | None = None, upstream_status: int | None = None) -> None:
        self.upstream_status = upstream_status
        message = f"External service '{service}' is unavailable"
        if detail:
            message = f"External service '{service}' failed: {detail}"
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=message)
