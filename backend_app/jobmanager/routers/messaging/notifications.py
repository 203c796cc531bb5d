"""
Notifications Router - In-app notifications for the signed-in user
"""
from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query
import logging

from ...core.dependencies import (
    get_current_user,
    get_error_handler,
    get_notification_service,
    require_manager,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...models.domain import NotificationCreateRequest
from ...services.messaging import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


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
async def list_notifications(
    unread: bool = Query(False, description="Only unread notifications"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    notification_svc: NotificationService = Depends(get_notification_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        items = await notification_svc.list_for_user(current_user["id"], unread_only=unread)
        unread_count = sum(1 for n in items if not n.get("read"))
        return {"status": 200, "count": len(items), "unread": unread_count, "notifications": items}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list notifications", exc)


@router.post("", status_code=201)
async def create_notification(
    payload: NotificationCreateRequest,
    current_user: Dict[str, Any] = Depends(require_manager),
    notification_svc: NotificationService = Depends(get_notification_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        notification = await notification_svc.send_from(
            current_user, payload.user_id, payload.title, payload.message, payload.type
        )
        return {"status": 201, "message": "Notification sent", "notification": notification}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "send notification", exc, details={"user_id": payload.user_id})


@router.put("/read-all")
async def mark_all_read(
    current_user: Dict[str, Any] = Depends(get_current_user),
    notification_svc: NotificationService = Depends(get_notification_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        updated = await notification_svc.mark_all_read(current_user["id"])
        return {"status": 200, "updated": updated}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "mark notifications read", exc)


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    notification_svc: NotificationService = Depends(get_notification_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        notification = await notification_svc.mark_read(notification_id, current_user)
        return {"status": 200, "notification": notification}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(
            error_handler, "mark notification read", exc, details={"notification_id": notification_id}
        )
