"""
Base exception classes for application-wide error handling.

Expected business failures (not a member, message not found) travel as
ServiceResult values. The classes here cover the paths where raising is the
natural shape: inbound webhook verification, identity payload parsing and
downstream sync faults.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - malformed input
    │   └── SignatureVerificationError - signed payload failed verification
    └── UpstreamSyncError - identity sync could not be persisted

Every class carries a default error_code; core.views maps those codes to
HTTP statuses so raised errors and ServiceResult failures render the same way.

Usage:
    from core.exceptions import SignatureVerificationError

    try:
        verify_webhook_signature(secret, headers, body)
    except SignatureVerificationError as e:
        return Response(e.to_dict(), status=400)
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
        details: Additional error context
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

        Example:
            {"error": "Missing signature headers", "error_code": "INVALID_SIGNATURE"}
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
    Raised when input validation fails outside a DRF serializer.

    Example:
        raise ValidationError(
            "Identity event has no user id",
            details={"field": "data.id"},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"


class SignatureVerificationError(ValidationError):
    """
    Raised when a signed inbound payload cannot be verified.

    Covers missing signature headers, stale timestamps and digest mismatches.
    Always a client error: the sender may retry with a correct signature.
    """

    default_error_code: str = "INVALID_SIGNATURE"


class UpstreamSyncError(BaseApplicationError):
    """
    Raised when an identity-provider event could not be written locally.

    Surfaced to the webhook sender as a server error so the provider retries.

    Example:
        try:
            user = cls.upsert(...)
        except DatabaseError as e:
            raise UpstreamSyncError(
                "Failed to sync user",
                details={"external_id": external_id},
            ) from e
    """

    default_error_code: str = "UPSTREAM_SYNC_FAILED"
