"""
Health Router - System health and data backend status
"""
from typing import Dict, Any, Optional
from fastapi import APIRouter, Depends
import logging

from ...core.config import AppConfig
from ...core.dependencies import (
    get_app_config,
    get_data_gateway,
    get_error_handler,
    get_system_health_service,
    require_admin,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...core.health import StartupValidator
from ...services.monitoring import SystemHealthService
from ...services.storage import DataGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["system-health"])


def _handle_internal_error(
    error_handler: ErrorHandler,
    action: str,
    exc: Exception,
    *,
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    error_handler.raise_internal(action, exc, error_code=error_code, extra=details)


@router.get("/health")
async def get_system_health(
    current_user: Dict[str, Any] = Depends(require_admin),
    system_service: SystemHealthService = Depends(get_system_health_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """App info and availability of every data backend (Admin only)"""
    try:
        health_data = await system_service.get_system_health()
        return {"status": 200, "health": health_data}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "get system health", exc)


@router.get("/validation")
async def get_validation_report(
    current_user: Dict[str, Any] = Depends(require_admin),
    gateway: DataGateway = Depends(get_data_gateway),
    config: AppConfig = Depends(get_app_config),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """Re-run the startup checks on demand (Admin only)"""
    try:
        report = await StartupValidator(gateway, config).health_check()
        return {"status": 200, "validation": report}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "run startup validation", exc)
