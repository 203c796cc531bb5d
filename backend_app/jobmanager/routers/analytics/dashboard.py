"""
Dashboard Router - Per-role dashboard statistics
"""
from typing import Dict, Any
from fastapi import APIRouter, Depends
import logging

from ...core.dependencies import (
    get_current_user,
    get_dashboard_service,
    get_error_handler,
)
from ...core.errors import ApplicationError, ErrorHandler
from ...services.analytics import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["dashboard"])


@router.get("/dashboard")
async def get_dashboard(
    current_user: Dict[str, Any] = Depends(get_current_user),
    dashboard_svc: DashboardService = Depends(get_dashboard_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """Admin platform overview, or business/employee stats over the jobs the caller can see."""
    try:
        dashboard = await dashboard_svc.get_dashboard(current_user)
        return {"status": 200, "role": current_user.get("role"), **dashboard}
    except ApplicationError:
        raise
    except Exception as exc:
        error_handler.raise_internal(
            "build dashboard", exc, extra={"user_id": current_user.get("id")}
        )
