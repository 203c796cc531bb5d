from .job_service import JobService, DEFAULT_CHECKLIST
from .job_permissions import (
    STATUS_TRANSITIONS,
    can_delete_job,
    can_edit_job,
    can_transition,
    can_view_job,
    get_user_job_permission,
)

__all__ = [
    "DEFAULT_CHECKLIST",
    "JobService",
    "STATUS_TRANSITIONS",
    "can_delete_job",
    "can_edit_job",
    "can_transition",
    "can_view_job",
    "get_user_job_permission",
]
