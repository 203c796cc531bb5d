"""
User Management Router - Account administration
Admins manage every account; business users manage the employees of their business.
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, Depends, Query, Request
import logging

from ...core.dependencies import (
    get_audit_logging_service,
    get_current_user,
    get_error_handler,
    get_user_service,
    require_manager,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...models.domain import UserCreateRequest, UserUpdateRequest, public_user
from ...services.monitoring import AuditLoggingService
from ...services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["user-management"])


def _handle_internal_error(
    error_handler: ErrorHandler,
    action: str,
    exc: Exception,
    *,
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    error_handler.raise_internal(action, exc, error_code=error_code, extra=details)


@router.get("")
async def list_users(
    role: Optional[str] = Query(None),
    current_user: Dict[str, Any] = Depends(require_manager),
    user_service: UserService = Depends(get_user_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        users = await user_service.list_users(current_user, role=role)
        return {"status": 200, "count": len(users), "users": [public_user(u) for u in users]}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list users", exc)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        user = await user_service.get_user(current_user, user_id)
        return {"status": 200, "user": public_user(user)}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "get user", exc, details={"user_id": user_id})


@router.post("", status_code=201)
async def create_user(
    payload: UserCreateRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_manager),
    user_service: UserService = Depends(get_user_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        created = await user_service.create_user(current_user, payload.model_dump(mode="json"))
        await audit_service.log_activity(
            current_user["id"],
            "user_created",
            resource_type="user",
            resource_id=created["id"],
            request=request,
            details={"role": created.get("role"), "business_id": created.get("business_id")},
        )
        return {"status": 201, "message": "User created", "user": public_user(created)}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "create user", exc, details={"email": payload.email})


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    payload: UserUpdateRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """Update a user. Anyone may edit their own profile fields."""
    try:
        data = payload.model_dump(mode="json", exclude_unset=True)
        updated = await user_service.update_user(current_user, user_id, data)
        await audit_service.log_activity(
            current_user["id"],
            "user_updated",
            resource_type="user",
            resource_id=user_id,
            request=request,
            details={"fields": sorted(k for k in data if k != "password")},
        )
        return {"status": 200, "message": "User updated", "user": public_user(updated)}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "update user", exc, details={"user_id": user_id})


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_manager),
    user_service: UserService = Depends(get_user_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        await user_service.delete_user(current_user, user_id)
        await audit_service.log_activity(
            current_user["id"], "user_deleted", resource_type="user", resource_id=user_id, request=request
        )
        return {"status": 200, "message": "User deleted", "user_id": user_id}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "delete user", exc, details={"user_id": user_id})
