from .domain import (
    ApplicationError,
    AuthenticationError,
    ConflictError,
    ErrorCode,
    InvalidTransitionError,
    PermissionError,
    ResourceNotFoundError,
    ValidationError,
)
from .handler import ErrorHandler, DefaultErrorHandler
from .http import application_error_response, register_exception_handlers, request_validation_response

# Data backend exceptions
from .storage import (
    StorageBackendError,
    BackendUnavailableError,
    AllBackendsFailedError,
    ItemAlreadyExistsError,
)

__all__ = [
    # Core errors
    "ApplicationError",
    "AuthenticationError",
    "ConflictError",
    "DefaultErrorHandler",
    "ErrorCode",
    "ErrorHandler",
    "InvalidTransitionError",
    "PermissionError",
    "ResourceNotFoundError",
    "ValidationError",
    "application_error_response",
    "register_exception_handlers",
    "request_validation_response",
    # Backend errors
    "StorageBackendError",
    "BackendUnavailableError",
    "AllBackendsFailedError",
    "ItemAlreadyExistsError",
]
