"""
Errors the API reports to clients.

Every subclass carries its HTTP status and error code as class attributes,
so services raise them with just a message (or the ids involved) and the
exception handlers in ``main.py`` render ``{"message", "error_code", "details"}``.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable codes clients can branch on."""

    # Authentication & authorization
    UNAUTHORIZED = "AUTH_001"

    # Records
    RESOURCE_NOT_FOUND = "RES_001"
    RESOURCE_CONFLICT = "RES_002"

    # Input
    INVALID_INPUT = "VAL_001"

    # Business rules
    INSUFFICIENT_PERMISSIONS = "BIZ_001"
    INVALID_STATUS_TRANSITION = "BIZ_002"

    # Platform
    INTERNAL_ERROR = "SYS_001"
    SERVICE_UNAVAILABLE = "SYS_002"
    EXTERNAL_SERVICE_ERROR = "SYS_003"


class ApplicationError(Exception):
    """Base class; ``error_code`` and ``status_code`` may be overridden per instance."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code
        self.details: Dict[str, Any] = dict(details or {})

    def as_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "error_code": self.error_code.value,
            "details": self.details,
        }


class AuthenticationError(ApplicationError):
    """Missing, invalid, revoked or orphaned session."""

    error_code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)


class PermissionError(ApplicationError):
    """Authenticated, but the role, permission list or tenant does not allow it."""

    error_code = ErrorCode.INSUFFICIENT_PERMISSIONS
    status_code = 403

    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)


class ResourceNotFoundError(ApplicationError):
    error_code = ErrorCode.RESOURCE_NOT_FOUND
    status_code = 404

    def __init__(self, resource_type: str, resource_id: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            details={"resource_type": resource_type, "resource_id": resource_id, **(details or {})},
        )


class ValidationError(ApplicationError):
    error_code = ErrorCode.INVALID_INPUT
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        merged = dict(details or {})
        if field:
            merged.setdefault("field", field)
        super().__init__(message, details=merged)


class ConflictError(ApplicationError):
    """Duplicate email and similar uniqueness clashes."""

    error_code = ErrorCode.RESOURCE_CONFLICT
    status_code = 409

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details)


class InvalidTransitionError(ApplicationError):
    """A job status move the lifecycle does not allow."""

    error_code = ErrorCode.INVALID_STATUS_TRANSITION
    status_code = 409

    def __init__(self, current: str, requested: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move job from '{current}' to '{requested}'",
            details={"current_status": current, "requested_status": requested, **(details or {})},
        )
