"""
Admin Router - Activity log access
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, Depends, Query
import logging

from ...core.dependencies import (
    get_audit_logging_service,
    get_error_handler,
    require_admin,
)
from ...core.errors import ApplicationError, ErrorHandler
from ...services.monitoring import AuditLoggingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["admin"])


@router.get("/activity")
async def list_activity(
    user_id: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    current_user: Dict[str, Any] = Depends(require_admin),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """Most recent activity entries, newest first (Admin only)"""
    try:
        entries = await audit_service.list_activity(user_id=user_id, action=action, limit=limit)
        return {"status": 200, "count": len(entries), "activity": entries}
    except ApplicationError:
        raise
    except Exception as exc:
        error_handler.raise_internal("list activity", exc, extra={"user_id": user_id, "action": action})
