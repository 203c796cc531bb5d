import logging
import uuid
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ...core.errors import PermissionError, ResourceNotFoundError
from ...models.domain import Notification, NotificationType, to_document, utc_now_iso
from ...models.permissions import Role

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

COLLECTION = "notifications"


class NotificationService:
    """In-app notifications addressed to a single user."""

    def __init__(self, gateway: "DataGateway"):
        self._gateway = gateway

    async def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.SYSTEM,
    ) -> Dict[str, Any]:
        notification = Notification(
            id=f"notif-{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            read=False,
            created_at=utc_now_iso(),
        )
        created = await self._gateway.create_item(COLLECTION, to_document(notification))
        logger.debug("Notification %s created for user %s", created["id"], user_id)
        return created

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> List[Dict[str, Any]]:
        items = await self._gateway.find(
            COLLECTION,
            lambda n: n.get("user_id") == user_id and (not unread_only or not n.get("read")),
        )
        items.sort(key=lambda n: n.get("created_at") or "", reverse=True)
        return items

    async def mark_read(self, notification_id: str, current_user: Dict[str, Any]) -> Dict[str, Any]:
        notification = await self._gateway.get_item(COLLECTION, notification_id)
        if notification is None:
            raise ResourceNotFoundError("Notification", notification_id)
        if notification.get("user_id") != current_user.get("id"):
            raise PermissionError("Notifications can only be marked read by their recipient")
        updated: Optional[Dict[str, Any]] = await self._gateway.update_item(
            COLLECTION, notification_id, {"read": True}
        )
        return updated or {**notification, "read": True}

    async def mark_all_read(self, user_id: str) -> int:
        count = 0
        for notification in await self.list_for_user(user_id, unread_only=True):
            await self._gateway.update_item(COLLECTION, notification["id"], {"read": True})
            count += 1
        return count

    async def send_from(
        self, current_user: Dict[str, Any], user_id: str, title: str, message: str,
        type: NotificationType = NotificationType.SYSTEM,
    ) -> Dict[str, Any]:
        """Notification raised by an admin or business user. Business users reach only their own staff."""
        target = await self._gateway.get_item("users", user_id)
        if target is None:
            raise ResourceNotFoundError("User", user_id)
        role = current_user.get("role")
        if role == Role.BUSINESS.value and target.get("business_id") != current_user.get("business_id"):
            raise PermissionError("Business users can only notify members of their business")
        if role not in (Role.ADMIN.value, Role.BUSINESS.value):
            raise PermissionError("Only admins and business users can send notifications")
        return await self.notify(user_id, title, message, type)
