"""
Audit Logging Service - activity trail for user and admin actions

This service handles ONLY activity records:
- Writing an entry per action (who, what, which resource, from where)
- Listing recent entries for administrators

Recording is best-effort: a failure to write an entry is logged and never
fails the request that triggered it.
"""

import uuid
from typing import Dict, Any, List, Optional, TYPE_CHECKING

from fastapi import Request

from ...core.errors import StorageBackendError
from ...models.domain import ActivityLog, to_document, utc_now_iso
from ...utils.logging_config import get_logger
from ..auth.authentication_service import extract_ip_address, extract_user_agent

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

COLLECTION = "activity_logs"


class AuditLoggingService:
    """
    Dedicated service for the activity log.

    NOT responsible for:
    - Authentication (handled by AuthenticationService)
    - Deciding whether an action is allowed (handled by the domain services)
    """

    def __init__(self, gateway: "DataGateway"):
        self._gateway = gateway
        self.logger = get_logger(__name__)

    async def log_activity(
        self,
        user_id: Optional[str],
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        request: Optional[Request] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """
        Record one activity entry.

        Args:
            user_id: Acting user (None for anonymous actions such as failed logins)
            action: Event name, e.g. "user_created", "job_status_changed"
            resource_type: Kind of resource touched
            resource_id: Identifier of that resource
            request: Incoming request, used for IP address and user agent
            details: Additional event metadata

        Returns:
            Activity id if recorded, None otherwise
        """
        entry = ActivityLog(
            id=str(uuid.uuid4()),
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            ip_address=extract_ip_address(request) if request is not None else None,
            user_agent=extract_user_agent(request) if request is not None else None,
            details=details or {},
            timestamp=utc_now_iso(),
        )
        try:
            await self._gateway.create_item(COLLECTION, to_document(entry))
        except (StorageBackendError, OSError) as e:
            self.logger.error(
                "Failed to record activity %s: %s",
                action,
                e,
                extra={"user_id": user_id, "resource_type": resource_type, "resource_id": resource_id},
            )
            return None
        self.logger.info(
            "Recorded activity %s by user %s", action, user_id,
            extra={"resource_type": resource_type, "resource_id": resource_id},
        )
        return entry.id

    async def list_activity(
        self, *, user_id: Optional[str] = None, action: Optional[str] = None, limit: int = 100
    ) -> List[Dict[str, Any]]:
        """Most recent entries first, optionally filtered by user or action."""
        entries = await self._gateway.list_items(COLLECTION)
        if user_id:
            entries = [e for e in entries if e.get("user_id") == user_id]
        if action:
            entries = [e for e in entries if e.get("action") == action]
        entries.sort(key=lambda e: e.get("timestamp") or "", reverse=True)
        return entries[:limit]
