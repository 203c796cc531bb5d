"""
Emails Router - Outbox of every email the platform has sent (admin only)
"""
from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query
import logging

from ...core.dependencies import (
    get_email_service,
    get_error_handler,
    require_admin,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...services.messaging import EmailService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emails", tags=["emails"])


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
async def list_emails(
    search: str = Query("", description="Match on recipient or subject"),
    status: str = Query("all", description="all, sent or failed"),
    current_user: Dict[str, Any] = Depends(require_admin),
    email_svc: EmailService = Depends(get_email_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        emails = await email_svc.list_emails(search=search, status=status)
        return {"status": 200, "count": len(emails), "emails": emails}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list emails", exc)


@router.delete("")
async def clear_emails(
    current_user: Dict[str, Any] = Depends(require_admin),
    email_svc: EmailService = Depends(get_email_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        removed = await email_svc.clear_emails()
        return {"status": 200, "message": "Outbox cleared", "removed": removed}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "clear emails", exc)


@router.delete("/{email_id}")
async def delete_email(
    email_id: str,
    current_user: Dict[str, Any] = Depends(require_admin),
    email_svc: EmailService = Depends(get_email_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        await email_svc.delete_email(email_id)
        return {"status": 200, "message": "Email deleted", "email_id": email_id}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "delete email", exc, details={"email_id": email_id})
