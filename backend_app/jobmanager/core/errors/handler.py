import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, NoReturn, Optional

from .domain import ApplicationError, ErrorCode


LoggerFactory = Callable[[], logging.Logger]


class ErrorHandler(ABC):
    """Turns unexpected router failures into logged, client-safe ``ApplicationError``s."""

    @abstractmethod
    def raise_internal(
        self,
        action: str,
        exc: Exception,
        *,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        extra: Optional[Dict[str, Any]] = None,
    ) -> NoReturn:
        """Log ``exc`` and raise an ``ApplicationError`` describing ``action``.

        Args:
            action: What the endpoint was doing, e.g. "create job".
            exc: The original exception.
            message: Client-facing message; defaults to "Failed to <action>".
            error_code: Code reported to the client.
            status_code: HTTP status reported to the client.
            extra: Ids involved (job, user, module); logged with the request context.
        """


class DefaultErrorHandler(ErrorHandler):
    """
    Logs the full request context under a short incident id.

    The client only receives the action and the incident id, so internal
    exception text (backend names, SDK messages) stays in the logs.
    """

    def __init__(
        self,
        logger_factory: Optional[LoggerFactory] = None,
        *,
        base_context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._logger_factory: LoggerFactory = logger_factory or (lambda: logging.getLogger("jobmanager.errors"))
        self._base_context = dict(base_context or {})

    def raise_internal(
        self,
        action: str,
        exc: Exception,
        *,
        message: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        extra: Optional[Dict[str, Any]] = None,
    ) -> NoReturn:
        incident_id = uuid.uuid4().hex[:12]
        self._logger_factory().error(
            "Failed to %s [incident %s]: %s",
            action,
            incident_id,
            exc,
            exc_info=exc,
            extra={
                "context": {
                    **self._base_context,
                    **(extra or {}),
                    "action": action,
                    "error_type": type(exc).__name__,
                    "incident_id": incident_id,
                }
            },
        )
        raise ApplicationError(
            message or f"Failed to {action}",
            error_code,
            status_code=status_code,
            details={"action": action, "incident_id": incident_id},
        ) from exc
