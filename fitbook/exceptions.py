"""
Exception classes for FitBook.

Every error raised by the service layer derives from FitBookException so
the application can translate it into a user-facing message in one place.
"""

from typing import Any, Dict, Optional


class FitBookException(Exception):
    """
    Base exception for all FitBook errors.

    Attributes:
        message: Human-readable error message
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class AuthError(FitBookException):
    """Authentication or registration failure reported by the auth backend."""

    def __init__(
        self,
        message: str,
        code: str = "auth_error",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.code = code
        super().__init__(message, details)


class BackendError(FitBookException):
    """
    A table operation was rejected by the backend.

    Attributes:
        operation: Name of the backend operation that failed
        code: Backend error code (PostgreSQL SQLSTATE or PostgREST code)
    """

    def __init__(
        self,
        operation: str,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.operation = operation
        self.code = code
        super().__init__(message, details)


class BackendTimeoutError(FitBookException):
    """A backend call did not finish within its time budget."""

    def __init__(
        self,
        operation: str,
        timeout_seconds: float,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        message = f"Backend request '{operation}' timed out after {timeout_seconds}s"
        super().__init__(message, details)


class NotFoundError(FitBookException):
    """A row the caller referred to does not exist or is not visible to them."""

    def __init__(
        self,
        resource: str,
        resource_id: Any,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} '{resource_id}' not found", details)


class PermissionDeniedError(FitBookException):
    """The signed-in user may not perform the requested operation."""


class ConflictError(FitBookException):
    """The operation conflicts with the current state of a row."""


class ValidationException(FitBookException):
    """
    Exception raised when form input validation fails.

    Attributes:
        field_name: Name of the field that failed validation
        value: The invalid value
        reason: Explanation of why validation failed
    """

    def __init__(
        self,
        field_name: str,
        value: Any,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.reason = reason
        message = f"Validation failed for '{field_name}': {reason}"
        super().__init__(message, details)
