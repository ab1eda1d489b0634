"""Domain exceptions for the sync service.

Defines domain-level exceptions that represent business rule violations
and collaborator failures. These exceptions are independent of the HTTP
layer; app.core.exception_handlers maps them to responses.
"""

from typing import Any


class SfdcSyncException(Exception):
    """Base exception for all sync service errors.

    All custom exceptions inherit from this class to allow consistent
    error handling and logging. Presentation layer maps these to HTTP
    responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an API error body."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(SfdcSyncException):
    """Raised when input validation fails (e.g. a sync record without an id)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class UnauthenticatedException(SfdcSyncException):
    """Raised for a missing, unknown or expired session, or bad login credentials.

    Expired and unknown tokens share one message so callers cannot tell
    whether a token ever existed.
    """

    def __init__(self, message: str = "Invalid or expired session") -> None:
        super().__init__(message, "UNAUTHENTICATED")


class ForbiddenException(SfdcSyncException):
    """Raised when an authenticated principal lacks the required role."""

    def __init__(
        self,
        required_role: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        """Initialize with the role the operation requires.

        Args:
            required_role: Optional role value (e.g. 'admin').
            message: Human-readable message.
        """
        details = {"required_role": required_role} if required_role else {}
        super().__init__(message, "FORBIDDEN", details)


class ResourceNotFoundException(SfdcSyncException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'principal').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class PrincipalAlreadyExistsException(SfdcSyncException):
    """Raised when a username is already taken by another principal."""

    def __init__(self) -> None:
        super().__init__(
            "Username is already registered",
            "PRINCIPAL_ALREADY_EXISTS",
            {},
        )


class ExternalAuthFailure(SfdcSyncException):
    """Raised when the CRM credential exchange fails (transport, status, or payload)."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        """Initialize with a short reason; raw provider payloads are never included.

        Args:
            reason: Short description (e.g. 'missing access_token').
            status_code: Optional HTTP status returned by the CRM.
        """
        details: dict[str, Any] = {"reason": reason}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            "External CRM authentication failed",
            "EXTERNAL_AUTH_FAILURE",
            details,
        )


class ExternalFetchFailure(SfdcSyncException):
    """Raised when the CRM record query fails or returns a malformed payload."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        """Initialize with a short reason.

        Args:
            reason: Short description (e.g. 'timeout', 'missing records').
            status_code: Optional HTTP status returned by the CRM.
        """
        details: dict[str, Any] = {"reason": reason}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            "External CRM record fetch failed",
            "EXTERNAL_FETCH_FAILURE",
            details,
        )


class ExternalAuthorizationRejected(SfdcSyncException):
    """Raised when the CRM rejects a bearer token (HTTP 401).

    Internal signal: the credential cache treats it as "stale regardless of
    the local window" and retries once before surfacing ExternalAuthFailure.
    """

    def __init__(self) -> None:
        super().__init__(
            "External CRM rejected the access token",
            "EXTERNAL_AUTHORIZATION_REJECTED",
        )


class PersistenceFailure(SfdcSyncException):
    """Raised when the relational store is unavailable or a statement fails."""

    def __init__(self, operation: str) -> None:
        """Initialize with the operation that failed.

        Args:
            operation: Short operation name (e.g. 'session.validate').
        """
        super().__init__(
            "Storage is temporarily unavailable",
            "PERSISTENCE_FAILURE",
            {"operation": operation},
        )
