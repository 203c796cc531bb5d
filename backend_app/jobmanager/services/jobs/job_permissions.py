from typing import Dict, Any, FrozenSet, Optional
import logging

from ...models.domain import JobStatus
from ...models.permissions import Role

logger = logging.getLogger(__name__)


# Allowed status moves; completed and cancelled are terminal
STATUS_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    JobStatus.PENDING.value: frozenset({
        JobStatus.IN_PROGRESS.value, JobStatus.CONFIRMED.value, JobStatus.CANCELLED.value,
    }),
    JobStatus.CONFIRMED.value: frozenset({
        JobStatus.IN_PROGRESS.value, JobStatus.COMPLETED.value, JobStatus.CANCELLED.value,
    }),
    JobStatus.IN_PROGRESS.value: frozenset({
        JobStatus.COMPLETED.value, JobStatus.CANCELLED.value,
    }),
    JobStatus.COMPLETED.value: frozenset(),
    JobStatus.CANCELLED.value: frozenset(),
}


def _same_business(job: Dict[str, Any], current_user: Dict[str, Any]) -> bool:
    business_id = current_user.get("business_id")
    return bool(business_id) and job.get("business_id") == business_id


def can_view_job(job: Dict[str, Any], current_user: Dict[str, Any]) -> bool:
    """Admins see every job, business users their business, employees their business or assignments."""
    role = current_user.get("role")
    if role == Role.ADMIN.value:
        return True
    if role == Role.BUSINESS.value:
        return _same_business(job, current_user)
    if role == Role.EMPLOYEE.value:
        return _same_business(job, current_user) or job.get("employee_id") == current_user.get("id")
    return False


def can_edit_job(job: Dict[str, Any], current_user: Dict[str, Any]) -> bool:
    role = current_user.get("role")
    if role == Role.ADMIN.value:
        return True
    if role == Role.BUSINESS.value:
        return _same_business(job, current_user)
    if role == Role.EMPLOYEE.value:
        return job.get("employee_id") == current_user.get("id") or _same_business(job, current_user)
    return False


def can_delete_job(job: Dict[str, Any], current_user: Dict[str, Any]) -> bool:
    role = current_user.get("role")
    if role == Role.ADMIN.value:
        return True
    return role == Role.BUSINESS.value and _same_business(job, current_user)


def can_transition(current: str, requested: str) -> bool:
    return requested in STATUS_TRANSITIONS.get(current, frozenset())


def get_user_job_permission(job: Dict[str, Any], current_user: Dict[str, Any]) -> Optional[str]:
    """Summarise the caller's rights on a job: "delete", "edit", "view" or None."""
    if can_delete_job(job, current_user):
        return "delete"
    if can_edit_job(job, current_user):
        return "edit"
    if can_view_job(job, current_user):
        return "view"
    return None
