"""
HTTP rendering of errors.

Every failure leaves the API as ``{"message", "error_code", "details"}``:
application errors as raised, FastAPI's own ``HTTPException``s (missing
bearer token, unknown route) mapped onto the matching error class, request
body validation as 422, and anything unexpected as a 500.
"""
import logging
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .domain import ApplicationError, AuthenticationError, ErrorCode, PermissionError

logger = logging.getLogger(__name__)


def application_error_response(error: ApplicationError) -> JSONResponse:
    """Build a JSON response for the given ``ApplicationError``."""
    return JSONResponse(status_code=error.status_code, content=error.as_dict())


def request_validation_response(errors: List[Dict[str, Any]]) -> JSONResponse:
    """Shape FastAPI request validation failures like every other error."""
    fields = []
    for err in errors:
        location = [str(part) for part in err.get("loc", ()) if part != "body"]
        fields.append({"field": ".".join(location), "message": err.get("msg", "invalid value")})
    error = ApplicationError(
        "Request validation failed",
        ErrorCode.INVALID_INPUT,
        status_code=422,
        details={"errors": fields},
    )
    return application_error_response(error)


def error_for_http_exception(request: Request, exc: HTTPException) -> ApplicationError:
    """Map a framework ``HTTPException`` onto an ``ApplicationError``."""
    if isinstance(exc.detail, dict) and {"message", "error_code"} <= set(exc.detail):
        return ApplicationError(
            exc.detail["message"],
            ErrorCode(exc.detail["error_code"]),
            status_code=exc.status_code,
            details=exc.detail.get("details") or {},
        )
    if exc.status_code == 401:
        return AuthenticationError()
    if exc.status_code == 403:
        return PermissionError()
    if exc.status_code == 404:
        return ApplicationError(
            "Route not found", ErrorCode.RESOURCE_NOT_FOUND, 404, {"path": request.url.path}
        )
    if exc.status_code < 500:
        return ApplicationError(str(exc.detail or "Bad request"), ErrorCode.INVALID_INPUT, exc.status_code)
    return ApplicationError("Internal server error", ErrorCode.INTERNAL_ERROR, exc.status_code)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApplicationError)
    async def handle_application_error(request: Request, exc: ApplicationError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return application_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        return request_validation_response(exc.errors())

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException):
        logger.warning(
            "HTTPException %s on %s %s", exc.status_code, request.method, request.url.path
        )
        return application_error_response(error_for_http_exception(request, exc))

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return application_error_response(
            ApplicationError("Internal server error", ErrorCode.INTERNAL_ERROR, 500, {"path": request.url.path})
        )
