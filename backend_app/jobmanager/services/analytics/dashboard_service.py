"""
Dashboard statistics.

Business and employee dashboards summarise the jobs the caller can see;
the admin dashboard summarises the whole platform.
"""
import logging
from collections import Counter
from typing import Any, Dict, List, TYPE_CHECKING

from ...models.domain import DashboardStats, JobStatus
from ...models.permissions import Role
from ..jobs.job_permissions import can_view_job

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

RECENT_JOBS = 4


def job_revenue(job: Dict[str, Any]) -> float:
    """Invoice if set, otherwise the quotation."""
    return float(job.get("invoice") or job.get("quotation") or 0)


def compute_job_stats(jobs: List[Dict[str, Any]], active_employees: int = 0) -> DashboardStats:
    counts = Counter(job.get("status") for job in jobs)
    revenue = sum(job_revenue(job) for job in jobs if job.get("status") == JobStatus.COMPLETED.value)
    return DashboardStats(
        total_jobs=len(jobs),
        completed_jobs=counts[JobStatus.COMPLETED.value],
        pending_jobs=counts[JobStatus.PENDING.value],
        in_progress_jobs=counts[JobStatus.IN_PROGRESS.value],
        confirmed_jobs=counts[JobStatus.CONFIRMED.value],
        cancelled_jobs=counts[JobStatus.CANCELLED.value],
        total_revenue=round(revenue, 2),
        active_employees=active_employees,
    )


class DashboardService:
    def __init__(self, gateway: "DataGateway"):
        self._gateway = gateway

    async def _recent_jobs(self, jobs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ordered = sorted(jobs, key=lambda j: j.get("created_at") or "", reverse=True)[:RECENT_JOBS]
        customers = {c["id"]: c for c in await self._gateway.list_items("customers")}
        users = {u["id"]: u for u in await self._gateway.list_items("users")}
        recent = []
        for job in ordered:
            customer = customers.get(job.get("customer_id") or "")
            employee = users.get(job.get("employee_id") or "")
            recent.append({
                "id": job["id"],
                "title": job.get("title"),
                "customer": customer.get("name") if customer else "Unknown Customer",
                "employee": employee.get("name") if employee else "Unassigned",
                "status": job.get("status"),
                "value": float(job.get("quotation") or 0),
            })
        return recent

    async def business_dashboard(self, current_user: Dict[str, Any]) -> Dict[str, Any]:
        jobs = [j for j in await self._gateway.list_items("jobs") if can_view_job(j, current_user)]
        business_id = current_user.get("business_id")
        active_employees = len(await self._gateway.find(
            "users",
            lambda u: u.get("role") == Role.EMPLOYEE.value
            and u.get("is_active", True)
            and business_id is not None
            and u.get("business_id") == business_id,
        ))
        stats = compute_job_stats(jobs, active_employees)
        return {"stats": stats.model_dump(), "recent_jobs": await self._recent_jobs(jobs)}

    async def admin_dashboard(self) -> Dict[str, Any]:
        users = await self._gateway.list_items("users")
        businesses = await self._gateway.list_items("businesses")
        jobs = await self._gateway.list_items("jobs")
        role_counts = Counter(u.get("role") for u in users)
        active_employees = sum(
            1 for u in users if u.get("role") == Role.EMPLOYEE.value and u.get("is_active", True)
        )
        stats = compute_job_stats(jobs, active_employees)
        activity = sorted(
            await self._gateway.list_items("activity_logs"),
            key=lambda a: a.get("timestamp") or "",
            reverse=True,
        )[:10]
        return {
            "stats": stats.model_dump(),
            "users": {
                "total": len(users),
                "active": sum(1 for u in users if u.get("is_active", True)),
                "by_role": {role.value: role_counts.get(role.value, 0) for role in Role},
            },
            "businesses": len(businesses),
            "recent_jobs": await self._recent_jobs(jobs),
            "recent_activity": activity,
        }

    async def get_dashboard(self, current_user: Dict[str, Any]) -> Dict[str, Any]:
        if current_user.get("role") == Role.ADMIN.value:
            return await self.admin_dashboard()
        return await self.business_dashboard(current_user)
