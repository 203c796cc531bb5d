from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query, Request
import logging

from ...core.dependencies import (
    get_audit_logging_service,
    get_current_user,
    get_customer_service,
    get_error_handler,
    require_manager,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...models.domain import CustomerCreateRequest, CustomerUpdateRequest
from ...services.businesses import CustomerService
from ...services.monitoring import AuditLoggingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/customers", tags=["customers"])


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
async def list_customers(
    search: str = Query(""),
    current_user: Dict[str, Any] = Depends(get_current_user),
    customer_svc: CustomerService = Depends(get_customer_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        customers = await customer_svc.list_customers(current_user, search=search)
        return {"status": 200, "count": len(customers), "customers": customers}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list customers", exc)


@router.get("/{customer_id}")
async def get_customer(
    customer_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    customer_svc: CustomerService = Depends(get_customer_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        customer = await customer_svc.get_customer(current_user, customer_id)
        return {"status": 200, "customer": customer}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "get customer", exc, details={"customer_id": customer_id})


@router.post("", status_code=201)
async def create_customer(
    payload: CustomerCreateRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_manager),
    customer_svc: CustomerService = Depends(get_customer_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        customer = await customer_svc.create_customer(current_user, payload.model_dump())
        await audit_service.log_activity(
            current_user["id"], "customer_created", resource_type="customer",
            resource_id=customer["id"], request=request,
        )
        return {"status": 201, "message": "Customer created", "customer": customer}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "create customer", exc)


@router.put("/{customer_id}")
async def update_customer(
    customer_id: str,
    payload: CustomerUpdateRequest,
    current_user: Dict[str, Any] = Depends(require_manager),
    customer_svc: CustomerService = Depends(get_customer_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        customer = await customer_svc.update_customer(
            current_user, customer_id, payload.model_dump(exclude_unset=True)
        )
        return {"status": 200, "message": "Customer updated", "customer": customer}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "update customer", exc, details={"customer_id": customer_id})


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: str,
    request: Request,
    current_user: Dict[str, Any] = Depends(require_manager),
    customer_svc: CustomerService = Depends(get_customer_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        await customer_svc.delete_customer(current_user, customer_id)
        await audit_service.log_activity(
            current_user["id"], "customer_deleted", resource_type="customer",
            resource_id=customer_id, request=request,
        )
        return {"status": 200, "message": "Customer deleted", "customer_id": customer_id}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "delete customer", exc, details={"customer_id": customer_id})
