from typing import Dict, Any, List, Optional, TYPE_CHECKING
import logging
import time
import uuid

from ...core.errors import (
    ApplicationError,
    ErrorCode,
    InvalidTransitionError,
    PermissionError,
    ResourceNotFoundError,
    ValidationError,
)
from ...models.domain import (
    ChecklistItem,
    Job,
    JobStatus,
    NotificationType,
    to_document,
    utc_now_iso,
)
from ...models.permissions import Role, has_permission
from .job_permissions import can_delete_job, can_edit_job, can_transition, can_view_job

if TYPE_CHECKING:
    from ..businesses.customer_service import CustomerService
    from ..messaging.notification_service import NotificationService
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

JOBS = "jobs"
DEFAULT_CHECKLIST = (
    "Initial assessment",
    "Prepare materials",
    "Complete work",
    "Final inspection",
)
MAX_ID_ATTEMPTS = 10


def default_checklist() -> List[ChecklistItem]:
    return [ChecklistItem(id=str(i), text=text) for i, text in enumerate(DEFAULT_CHECKLIST, start=1)]


class JobService:
    """Job lifecycle, visibility and field actions.

    Designed to be used as a lightweight per-request instance created via DI.
    """

    def __init__(
        self,
        gateway: "DataGateway",
        customer_service: "CustomerService",
        notification_service: "NotificationService",
    ):
        self._gateway = gateway
        self.customers = customer_service
        self.notifications = notification_service

    # === Helpers ===

    async def _new_job_id(self) -> str:
        """``JOB-`` plus the last six digits of the millisecond clock, stepping on collision."""
        base = int(time.time() * 1000)
        for attempt in range(MAX_ID_ATTEMPTS):
            candidate = f"JOB-{(base + attempt) % 1_000_000:06d}"
            if await self._gateway.get_item(JOBS, candidate) is None:
                return candidate
        raise ApplicationError("Could not allocate a job id", ErrorCode.SERVICE_UNAVAILABLE, status_code=503)

    async def _load(self, job_id: str) -> Dict[str, Any]:
        job = await self._gateway.get_item(JOBS, job_id)
        if job is None:
            raise ResourceNotFoundError("Job", job_id)
        return job

    async def _load_visible(self, current_user: Dict[str, Any], job_id: str) -> Dict[str, Any]:
        job = await self._load(job_id)
        if not can_view_job(job, current_user):
            raise ResourceNotFoundError("Job", job_id)
        return job

    async def _load_editable(self, current_user: Dict[str, Any], job_id: str) -> Dict[str, Any]:
        job = await self._load_visible(current_user, job_id)
        if not can_edit_job(job, current_user):
            raise PermissionError("You cannot edit this job")
        return job

    async def _validate_employee(self, employee_id: str, business_id: str) -> None:
        employee = await self._gateway.get_item("users", employee_id)
        if employee is None:
            raise ResourceNotFoundError("User", employee_id)
        if employee.get("business_id") != business_id:
            raise ValidationError("Assigned employee must belong to the job's business", field="employee_id")

    async def _validate_customer(self, current_user: Dict[str, Any], customer_id: str, business_id: str) -> None:
        customer = await self.customers.get_customer(current_user, customer_id)
        if customer.get("business_id") != business_id:
            raise ValidationError("Customer must belong to the job's business", field="customer_id")

    async def _notify(self, user_id: Optional[str], actor: Dict[str, Any], title: str, message: str) -> None:
        if not user_id or user_id == actor.get("id"):
            return
        try:
            await self.notifications.notify(user_id, title, message, NotificationType.JOB)
        except ApplicationError as exc:
            logger.warning("Job notification to %s failed: %s", user_id, exc)

    async def _save(self, job_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        updated = await self._gateway.update_item(JOBS, job_id, updates)
        if updated is None:
            raise ResourceNotFoundError("Job", job_id)
        return updated

    # === Queries ===

    async def list_jobs(
        self, current_user: Dict[str, Any], search: str = "", status: str = "all"
    ) -> List[Dict[str, Any]]:
        """Jobs visible to the caller, filtered by title/id text and status."""
        term = (search or "").strip().lower()
        jobs = []
        for job in await self._gateway.list_items(JOBS):
            if not can_view_job(job, current_user):
                continue
            if status and status != "all" and job.get("status") != status:
                continue
            if term and term not in (job.get("title") or "").lower() and term not in (job.get("id") or "").lower():
                continue
            jobs.append(job)
        jobs.sort(key=lambda j: j.get("created_at") or "", reverse=True)
        return jobs

    async def get_job(self, current_user: Dict[str, Any], job_id: str) -> Dict[str, Any]:
        return await self._load_visible(current_user, job_id)

    # === Commands ===

    async def create_job(self, current_user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        if not has_permission(current_user, "create_jobs"):
            raise PermissionError("You do not have permission to create jobs")

        if current_user.get("role") == Role.ADMIN.value:
            business_id = data.get("business_id")
            if not business_id:
                raise ValidationError("business_id is required", field="business_id")
            if await self._gateway.get_item("businesses", business_id) is None:
                raise ResourceNotFoundError("Business", business_id)
        else:
            business_id = current_user.get("business_id")
            if not business_id:
                raise ValidationError("Your account is not linked to a business", field="business_id")

        customer_id = data.get("customer_id")
        if data.get("customer"):
            customer = await self.customers.create_customer(
                current_user, data["customer"], business_id=business_id, for_job=True
            )
            customer_id = customer["id"]
        elif customer_id:
            await self._validate_customer(current_user, customer_id, business_id)

        employee_id = data.get("employee_id")
        if employee_id:
            await self._validate_employee(employee_id, business_id)

        if data.get("checklist"):
            checklist = [
                ChecklistItem(id=str(i), text=item["text"], completed=bool(item.get("completed")))
                for i, item in enumerate(data["checklist"], start=1)
            ]
        else:
            checklist = default_checklist()

        job = Job(
            id=await self._new_job_id(),
            title=data["title"].strip(),
            description=data.get("description") or "",
            status=JobStatus.PENDING,
            customer_id=customer_id,
            employee_id=employee_id,
            business_id=business_id,
            scheduled_date=data.get("scheduled_date"),
            quotation=data.get("quotation"),
            checklist=checklist,
            created_at=utc_now_iso(),
        )
        created = await self._gateway.create_item(JOBS, to_document(job))
        logger.info("Job %s created by %s", created["id"], current_user["id"], extra={"business_id": business_id})

        await self._notify(
            employee_id, current_user, "New job assigned",
            f"You have been assigned to {created['title']} ({created['id']})",
        )
        return created

    async def update_job(self, current_user: Dict[str, Any], job_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        job = await self._load_editable(current_user, job_id)
        updates = {k: v for k, v in data.items() if k not in ("id", "status", "business_id", "created_at")}

        if updates.get("customer_id"):
            await self._validate_customer(current_user, updates["customer_id"], job["business_id"])
        new_employee = updates.get("employee_id")
        if new_employee and new_employee != job.get("employee_id"):
            await self._validate_employee(new_employee, job["business_id"])
        if "title" in updates and updates["title"]:
            updates["title"] = updates["title"].strip()

        if not updates:
            return job
        updated = await self._save(job_id, updates)

        if new_employee and new_employee != job.get("employee_id"):
            await self._notify(
                new_employee, current_user, "New job assigned",
                f"You have been assigned to {updated['title']} ({job_id})",
            )
        return updated

    async def change_status(self, current_user: Dict[str, Any], job_id: str, status: Any) -> Dict[str, Any]:
        """
        Move a job along its lifecycle.

        Completing a job stamps ``completed_date``. Requesting the current
        status again is a no-op.
        """
        requested = getattr(status, "value", status)
        job = await self._load_editable(current_user, job_id)
        current = job.get("status", JobStatus.PENDING.value)
        if requested == current:
            return job
        if not can_transition(current, requested):
            raise InvalidTransitionError(current, requested, details={"job_id": job_id})

        updates: Dict[str, Any] = {"status": requested}
        if requested == JobStatus.COMPLETED.value:
            updates["completed_date"] = utc_now_iso()
        updated = await self._save(job_id, updates)
        logger.info("Job %s moved %s -> %s by %s", job_id, current, requested, current_user["id"])

        await self._notify(
            job.get("employee_id"), current_user, "Job status updated",
            f"{job.get('title')} ({job_id}) is now {requested}",
        )
        return updated

    async def toggle_checklist_item(self, current_user: Dict[str, Any], job_id: str, item_id: str) -> Dict[str, Any]:
        job = await self._load_editable(current_user, job_id)
        checklist = job.get("checklist") or []
        for item in checklist:
            if item.get("id") == item_id:
                item["completed"] = not item.get("completed", False)
                break
        else:
            raise ResourceNotFoundError("Checklist item", item_id)
        return await self._save(job_id, {"checklist": checklist})

    async def capture_signature(self, current_user: Dict[str, Any], job_id: str, signature: str) -> Dict[str, Any]:
        if not has_permission(current_user, "capture_signatures"):
            raise PermissionError("You do not have permission to capture signatures")
        await self._load_editable(current_user, job_id)
        return await self._save(job_id, {"signature": signature})

    async def add_attachment(
        self, current_user: Dict[str, Any], job_id: str, kind: str, reference: str
    ) -> Dict[str, Any]:
        job = await self._load_editable(current_user, job_id)
        field = "images" if kind == "image" else "documents"
        items = list(job.get(field) or [])
        if reference not in items:
            items.append(reference)
        return await self._save(job_id, {field: items})

    async def set_invoice(self, current_user: Dict[str, Any], job_id: str, amount: float) -> Dict[str, Any]:
        await self._load_editable(current_user, job_id)
        if amount < 0:
            raise ValidationError("Invoice amount cannot be negative", field="invoice")
        return await self._save(job_id, {"invoice": amount})

    async def delete_job(self, current_user: Dict[str, Any], job_id: str) -> None:
        job = await self._load_visible(current_user, job_id)
        if not can_delete_job(job, current_user):
            raise PermissionError("You cannot delete this job")
        await self._gateway.delete_item(JOBS, job_id)
        logger.info("Job %s deleted by %s", job_id, current_user["id"])
