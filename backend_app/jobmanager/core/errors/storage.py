"""
Data backend exceptions.

The gateway treats ``BackendUnavailableError`` as "try the next backend";
every other exception raised by a backend is an answer and is propagated.
"""
from typing import Any, Dict, List, Optional

from .domain import ApplicationError, ErrorCode


class StorageBackendError(ApplicationError):
    """Base exception for all data backend errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, error_code, status_code, details)


class BackendUnavailableError(StorageBackendError):
    """Raised when a backend is not configured or cannot be reached."""

    def __init__(self, backend: str, reason: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        message = f"Data backend '{backend}' is unavailable"
        if reason:
            message += f": {reason}"
        enriched_details: Dict[str, Any] = {"backend": backend}
        if reason:
            enriched_details["reason"] = reason
        if details:
            enriched_details.update(details)
        self.backend = backend
        super().__init__(message, ErrorCode.SERVICE_UNAVAILABLE, 503, enriched_details)


class AllBackendsFailedError(StorageBackendError):
    """Raised when every configured backend was unavailable for an operation."""

    def __init__(self, operation: str, collection: str, failures: List[Dict[str, Any]]) -> None:
        super().__init__(
            f"No data backend could {operation} '{collection}'",
            ErrorCode.SERVICE_UNAVAILABLE,
            503,
            {"operation": operation, "collection": collection, "failures": failures},
        )


class ItemAlreadyExistsError(StorageBackendError):
    """Raised by a backend when an item id is already taken."""

    def __init__(self, collection: str, item_id: str) -> None:
        super().__init__(
            f"Item '{item_id}' already exists in '{collection}'",
            ErrorCode.RESOURCE_CONFLICT,
            409,
            {"collection": collection, "item_id": item_id},
        )
