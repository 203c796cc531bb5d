"""
AR Models Router - Model library and image-to-3D conversion
Conversion runs as a FastAPI background task; clients poll the model for progress.
"""
from typing import Optional, Dict, Any
from fastapi import APIRouter, BackgroundTasks, Depends, Request
import logging

from ...core.dependencies import (
    get_ar_model_service,
    get_audit_logging_service,
    get_current_user,
    get_error_handler,
    require_admin,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...models.domain import ConversionRequest
from ...services.catalog import ARModelService
from ...services.monitoring import AuditLoggingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/models", tags=["ar-models"])


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
async def list_models(
    current_user: Dict[str, Any] = Depends(get_current_user),
    model_svc: ARModelService = Depends(get_ar_model_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        models = await model_svc.list_models(current_user)
        return {"status": 200, "count": len(models), "models": models}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list AR models", exc)


@router.post("/convert", status_code=202)
async def convert_image(
    payload: ConversionRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    current_user: Dict[str, Any] = Depends(require_admin),
    model_svc: ARModelService = Depends(get_ar_model_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    """Queue a conversion. The model starts in ``processing`` and is updated stage by stage."""
    try:
        model = await model_svc.start_conversion(current_user, payload.model_dump(mode="json"))
        background_tasks.add_task(model_svc.run_conversion, model["id"])
        await audit_service.log_activity(
            current_user["id"], "model_conversion_started", resource_type="ar_model",
            resource_id=model["id"], request=request,
        )
        return {"status": 202, "message": "Conversion started", "model": model}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "start AR conversion", exc)


@router.get("/{model_id}")
async def get_model(
    model_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    model_svc: ARModelService = Depends(get_ar_model_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        model = await model_svc.get_model(current_user, model_id)
        return {"status": 200, "model": model}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "get AR model", exc, details={"model_id": model_id})


@router.put("/{model_id}/access/{business_id}")
async def toggle_business_access(
    model_id: str,
    business_id: str,
    current_user: Dict[str, Any] = Depends(require_admin),
    model_svc: ARModelService = Depends(get_ar_model_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        model = await model_svc.toggle_business_access(current_user, model_id, business_id)
        return {
            "status": 200,
            "model": model,
            "has_access": business_id in (model.get("business_access") or []),
        }
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(
            error_handler, "toggle AR model access", exc,
            details={"model_id": model_id, "business_id": business_id},
        )


@router.delete("/{model_id}")
async def delete_model(
    model_id: str,
    current_user: Dict[str, Any] = Depends(require_admin),
    model_svc: ARModelService = Depends(get_ar_model_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        await model_svc.delete_model(current_user, model_id)
        return {"status": 200, "message": "Model deleted", "model_id": model_id}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "delete AR model", exc, details={"model_id": model_id})
