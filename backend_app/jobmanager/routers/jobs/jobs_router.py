from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query, Request
import logging

from ...core.dependencies import (
    get_audit_logging_service,
    get_current_user,
    get_error_handler,
    get_job_service,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...models.domain import (
    AttachmentRequest,
    InvoiceRequest,
    JobCreateRequest,
    JobStatusUpdateRequest,
    JobUpdateRequest,
    SignatureRequest,
)
from ...services.jobs import JobService, get_user_job_permission
from ...services.monitoring import AuditLoggingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


def _handle_internal_error(
    error_handler: ErrorHandler,
    action: str,
    exc: Exception,
    *,
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    error_handler.raise_internal(
        action,
        exc,
        error_code=error_code,
        extra=details,
    )


def _with_permission(job: Dict[str, Any], current_user: Dict[str, Any]) -> Dict[str, Any]:
    return {**job, "user_permission": get_user_job_permission(job, current_user)}


@router.get("")
async def list_jobs(
    search: str = Query("", description="Match on title or job id"),
    status: str = Query("all"),
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        jobs = await job_svc.list_jobs(current_user, search=search, status=status)
        return {
            "status": 200,
            "count": len(jobs),
            "jobs": [_with_permission(job, current_user) for job in jobs],
        }
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list jobs", exc, details={"status": status})


@router.get("/{job_id}")
async def get_job(
    job_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        job = await job_svc.get_job(current_user, job_id)
        return {"status": 200, "job": _with_permission(job, current_user)}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "get job", exc, details={"job_id": job_id})


@router.post("", status_code=201)
async def create_job(
    payload: JobCreateRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        job = await job_svc.create_job(current_user, payload.model_dump(mode="json", exclude_none=True))
        await audit_service.log_activity(
            current_user["id"],
            "job_created",
            resource_type="job",
            resource_id=job["id"],
            request=request,
            details={"business_id": job.get("business_id"), "employee_id": job.get("employee_id")},
        )
        return {"status": 201, "message": "Job created", "job": job}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "create job", exc)


@router.put("/{job_id}")
async def update_job(
    job_id: str,
    payload: JobUpdateRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        data = payload.model_dump(mode="json", exclude_unset=True)
        job = await job_svc.update_job(current_user, job_id, data)
        await audit_service.log_activity(
            current_user["id"],
            "job_updated",
            resource_type="job",
            resource_id=job_id,
            request=request,
            details={"fields": sorted(data)},
        )
        return {"status": 200, "message": "Job updated", "job": job}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "update job", exc, details={"job_id": job_id})


@router.put("/{job_id}/status")
async def update_job_status(
    job_id: str,
    payload: JobStatusUpdateRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        job = await job_svc.change_status(current_user, job_id, payload.status)
        await audit_service.log_activity(
            current_user["id"],
            "job_status_changed",
            resource_type="job",
            resource_id=job_id,
            request=request,
            details={"status": job.get("status")},
        )
        return {"status": 200, "message": "Job status updated", "job": job}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "update job status", exc, details={"job_id": job_id})


@router.post("/{job_id}/checklist/{item_id}/toggle")
async def toggle_checklist_item(
    job_id: str,
    item_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        job = await job_svc.toggle_checklist_item(current_user, job_id, item_id)
        return {"status": 200, "job": job}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(
            error_handler, "toggle checklist item", exc, details={"job_id": job_id, "item_id": item_id}
        )


@router.post("/{job_id}/signature")
async def capture_signature(
    job_id: str,
    payload: SignatureRequest,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        job = await job_svc.capture_signature(current_user, job_id, payload.signature)
        await audit_service.log_activity(
            current_user["id"], "signature_captured", resource_type="job", resource_id=job_id, request=request
        )
        return {"status": 200, "message": "Signature captured", "job": job}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "capture signature", exc, details={"job_id": job_id})


@router.post("/{job_id}/attachments")
async def add_attachment(
    job_id: str,
    payload: AttachmentRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        job = await job_svc.add_attachment(current_user, job_id, payload.kind, payload.reference)
        return {"status": 200, "job": job}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "add attachment", exc, details={"job_id": job_id})


@router.put("/{job_id}/invoice")
async def set_invoice(
    job_id: str,
    payload: InvoiceRequest,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        job = await job_svc.set_invoice(current_user, job_id, payload.invoice)
        return {"status": 200, "job": job}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "set invoice", exc, details={"job_id": job_id})


@router.delete("/{job_id}")
async def delete_job(
    job_id: str,
    request: Request,
    current_user: Dict[str, Any] = Depends(get_current_user),
    job_svc: JobService = Depends(get_job_service),
    audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        await job_svc.delete_job(current_user, job_id)
        await audit_service.log_activity(
            current_user["id"], "job_deleted", resource_type="job", resource_id=job_id, request=request
        )
        return {"status": 200, "message": "Job deleted", "job_id": job_id}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "delete job", exc, details={"job_id": job_id})
