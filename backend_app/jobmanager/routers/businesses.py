"""
Business Router - Tenant records
Admins manage every business; business users may read their own.
"""
from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Request
import logging

from ..core.dependencies import (
    get_audit_logging_service,
    get_business_service,
    get_current_user,
    get_error_handler,
    require_admin,
)
from ..core.errors import ApplicationError, ErrorCode, ErrorHandler
from ..models.domain import BusinessCreateRequest, BusinessUpdateRequest
from ..services.businesses import BusinessService
from ..services.monitoring import AuditLoggingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/businesses", tags=["businesses"])


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
async def list_businesses(
    current_user: Dict[str, Any] = Depends(get_current_user),
    business_svc: BusinessService = Depends(get_business_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        businesses = await business_svc.list_businesses(current_user)
        return {"status": 200, "count": len(businesses), "businesses": businesses}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list businesses", exc)


@router.get("/{business_id}")
async def get_business(
    business_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    business_svc: BusinessService = Depends(get_business_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        business = await business_svc.get_business(current_user, business_id)
        return {"status": 200, "business": business}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "get business", exc, details={"business_id": business_id})


@router.post("", status_code=201)
async def create_business(
    payload: BusinessCreateRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_admin),
    business_svc: BusinessService = Depends(get_business_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        business = await business_svc.create_business(current_user, payload.model_dump(mode="json"))
        await audit_service.log_activity(
            current_user["id"], "business_created", resource_type="business",
            resource_id=business["id"], request=request, details={"name": business.get("name")},
        )
        return {"status": 201, "message": "Business created", "business": business}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "create business", exc)


@router.put("/{business_id}")
async def update_business(
    business_id: str,
    payload: BusinessUpdateRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_admin),
    business_svc: BusinessService = Depends(get_business_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        data = payload.model_dump(mode="json", exclude_unset=True)
        business = await business_svc.update_business(current_user, business_id, data)
        await audit_service.log_activity(
            current_user["id"], "business_updated", resource_type="business",
            resource_id=business_id, request=request, details={"fields": sorted(data)},
        )
        return {"status": 200, "message": "Business updated", "business": business}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "update business", exc, details={"business_id": business_id})


@router.delete("/{business_id}")
async def delete_business(
    business_id: str,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_admin),
    business_svc: BusinessService = Depends(get_business_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        await business_svc.delete_business(current_user, business_id)
        await audit_service.log_activity(
            current_user["id"], "business_deleted", resource_type="business",
            resource_id=business_id, request=request,
        )
        return {"status": 200, "message": "Business deleted", "business_id": business_id}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "delete business", exc, details={"business_id": business_id})
