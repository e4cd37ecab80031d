"""
Base exception classes for application-wide error handling.

Every domain error raised by the settlement engine derives from
BaseApplicationError so the admin API can render one consistent payload:

    {"error": "...", "error_code": "...", "details": {...}}

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Request is not allowed in the current state
    └── NotFoundError - Referenced record does not exist

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        f"Booking {booking_id} not found",
        error_code="BOOKING_NOT_FOUND",
        details={"booking_id": str(booking_id)},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (ids, amounts, failed step)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Returns:
            Dict with error, error_code and (when present) details keys
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when a request violates a business rule.

    Use for preconditions the operator can see and fix, e.g. trying to
    release an advance milestone by hand. No state has changed when this
    is raised.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested record does not exist.

    Example:
        raise NotFoundError(
            f"Refund {refund_id} not found",
            error_code="REFUND_NOT_FOUND",
            details={"refund_id": str(refund_id)},
        )
    """

    default_error_code: str = "NOT_FOUND"
