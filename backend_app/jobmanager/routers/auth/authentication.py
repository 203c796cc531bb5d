"""
Authentication Router - Core authentication operations
Handles login, logout and session rehydration
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, Depends, Request
import logging

from ...core.dependencies import (
    get_audit_logging_service,
    get_authentication_service,
    get_current_user,
    get_error_handler,
    get_permission_service,
    get_token_payload,
)
from ...core.errors import (
    ApplicationError,
    AuthenticationError,
    ErrorCode,
    ErrorHandler,
)
from ...models.domain import LoginRequest, public_user
from ...models.permissions import menu_items
from ...services.auth import AuthenticationService, PermissionService
from ...services.monitoring import AuditLoggingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["authentication"])


def _handle_internal_error(
    error_handler: ErrorHandler,
    action: str,
    exc: Exception,
    *,
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    error_handler.raise_internal(action, exc, error_code=error_code, extra=details)


@router.post("/login")
async def login_for_access_token(
    payload: LoginRequest,
    request: Request,
    auth_service: AuthenticationService = Depends(get_authentication_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """Exchange email and password for a bearer token."""
    try:
        try:
            result = await auth_service.login(payload.email, payload.password)
        except AuthenticationError:
            await audit_service.log_activity(
                None,
                "login_failed",
                resource_type="auth",
                request=request,
                details={"email": payload.email},
            )
            raise

        user = result["user"]
        await audit_service.log_activity(
            user["id"], "login", resource_type="auth", resource_id=user["id"], request=request
        )
        return {
            "status": 200,
            "message": "Login successful",
            "access_token": result["access_token"],
            "token_type": result["token_type"],
            "user": public_user(user),
        }
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "process login request", exc, details={"email": payload.email})


@router.post("/logout")
async def logout(
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    token_payload: Dict[str, Any] = Depends(get_token_payload),
    auth_service: AuthenticationService = Depends(get_authentication_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """Revoke the presented token."""
    try:
        revoked = await auth_service.logout(token_payload)
        await audit_service.log_activity(
            current_user["id"], "logout", resource_type="auth", resource_id=current_user["id"], request=request
        )
        return {"status": 200, "message": "Logged out", "revoked": revoked}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "log out", exc, details={"user_id": current_user.get("id")})


@router.get("/me")
async def read_current_user(
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    return {"status": 200, "user": public_user(current_user)}


@router.get("/me/navigation")
async def read_navigation(
    current_user: Dict[str, Any] = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """Role menu for the current user, with feature-module entries resolved."""
    try:
        module_access = await permission_service.module_access_map(current_user)
        return {
            "status": 200,
            "role": current_user.get("role"),
            "items": menu_items(current_user, module_access),
            "modules": module_access,
        }
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "build navigation", exc, details={"user_id": current_user.get("id")})
