"""Core utilities: exceptions, idempotency keys, logging and middleware."""

from rentalflow.core.exceptions import (
    AppException,
    AuthenticationError,
    DuplicateReview,
    ExternalServiceError,
    Forbidden,
    IllegalTransition,
    InvalidRange,
    ItemUnavailable,
    NotFoundError,
    PaymentError,
    RefundRequired,
    TerminalState,
    ValidationError,
)

__all__ = [
    "AppException",
    "AuthenticationError",
    "DuplicateReview",
    "ExternalServiceError",
    "Forbidden",
    "IllegalTransition",
    "InvalidRange",
    "ItemUnavailable",
    "NotFoundError",
    "PaymentError",
    "RefundRequired",
    "TerminalState",
    "ValidationError",
]
