"""
Module Permissions Router - Per-user access to feature modules such as the AR camera
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, Depends, Request
import logging

from ...core.dependencies import (
    get_audit_logging_service,
    get_current_user,
    get_error_handler,
    get_permission_service,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...models.domain import ModuleGrantRequest
from ...services.auth import PermissionService
from ...services.monitoring import AuditLoggingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/modules", tags=["module-permissions"])


def _handle_internal_error(
    error_handler: ErrorHandler,
    action: str,
    exc: Exception,
    *,
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    error_handler.raise_internal(action, exc, error_code=error_code, extra=details)


@router.get("/{module_id}/access")
async def get_module_access(
    module_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        access = await permission_service.get_access(current_user, module_id)
        return {"status": 200, **access}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "check module access", exc, details={"module_id": module_id})


@router.get("/{module_id}/grants")
async def list_module_grants(
    module_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        grants = await permission_service.list_grants(current_user, module_id)
        return {"status": 200, "module_id": module_id, "count": len(grants), "grants": grants}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list module grants", exc, details={"module_id": module_id})


@router.post("/{module_id}/grants", status_code=201)
async def grant_module_access(
    module_id: str,
    payload: ModuleGrantRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        record = await permission_service.grant(
            current_user, module_id, payload.user_id, can_grant=payload.can_grant
        )
        await audit_service.log_activity(
            current_user["id"],
            "module_access_granted",
            resource_type="module",
            resource_id=module_id,
            request=request,
            details={"user_id": payload.user_id, "can_grant": payload.can_grant},
        )
        return {"status": 201, "message": "Access granted", "grant": record}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(
            error_handler,
            "grant module access",
            exc,
            details={"module_id": module_id, "user_id": payload.user_id},
        )


@router.delete("/{module_id}/grants/{user_id}")
async def revoke_module_access(
    module_id: str,
    user_id: str,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    permission_service: PermissionService = Depends(get_permission_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        removed = await permission_service.revoke(current_user, module_id, user_id)
        await audit_service.log_activity(
            current_user["id"],
            "module_access_revoked",
            resource_type="module",
            resource_id=module_id,
            request=request,
            details={"user_id": user_id},
        )
        return {"status": 200, "message": "Access revoked", "module_id": module_id, "user_id": user_id, "removed": removed}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(
            error_handler, "revoke module access", exc, details={"module_id": module_id, "user_id": user_id}
        )
