"""Module permissions: per-user access to feature modules such as the AR camera.

A record ``(user_id, module_id, can_access, can_grant_access, granted_by,
granted_at)`` is stored per user and module. Changes are mirrored into the
user's ``permissions`` list (``ar_camera_access`` / ``ar_camera_grant``) so
clients that only read the user document see the same answer.
"""
from typing import Optional, Dict, Any, List, TYPE_CHECKING
import logging

from ...core.errors import PermissionError, ResourceNotFoundError, ValidationError
from ...models.domain import ModulePermission, to_document, utc_now_iso
from ...models.permissions import (
    KNOWN_MODULES,
    MODULE_PERMISSION_STRINGS,
    Role,
    can_grant_module_access,
    has_module_access,
)

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

COLLECTION = "module_permissions"
USERS = "users"


def record_id(user_id: str, module_id: str) -> str:
    return f"{module_id}:{user_id}"


class PermissionService:
    """Grants, revokes and answers module access questions."""

    def __init__(self, gateway: "DataGateway"):
        self._gateway = gateway

    @staticmethod
    def _check_module(module_id: str) -> None:
        if module_id not in KNOWN_MODULES:
            raise ValidationError(f"Unknown module '{module_id}'", field="module_id")

    async def _records_for_module(self, module_id: str) -> List[Dict[str, Any]]:
        return await self._gateway.find(COLLECTION, lambda r: r.get("module_id") == module_id)

    async def _records_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return await self._gateway.find(COLLECTION, lambda r: r.get("user_id") == user_id)

    async def get_access(self, user: Dict[str, Any], module_id: str) -> Dict[str, Any]:
        self._check_module(module_id)
        records = await self._records_for_user(user["id"])
        return {
            "module_id": module_id,
            "can_access": has_module_access(user, module_id, records),
            "can_grant": can_grant_module_access(user, module_id, records),
        }

    async def module_access_map(self, user: Dict[str, Any]) -> Dict[str, bool]:
        records = await self._records_for_user(user["id"])
        return {module: has_module_access(user, module, records) for module in KNOWN_MODULES}

    async def _authorize(self, current_user: Dict[str, Any], module_id: str, target: Dict[str, Any]) -> None:
        """Admins may manage anyone; grantors only employees of their own business."""
        if current_user.get("role") == Role.ADMIN.value:
            return
        records = await self._records_for_user(current_user["id"])
        if not can_grant_module_access(current_user, module_id, records):
            raise PermissionError(f"You cannot grant access to '{module_id}'")
        same_business = (
            current_user.get("business_id")
            and target.get("business_id") == current_user.get("business_id")
        )
        if target.get("role") != Role.EMPLOYEE.value or not same_business:
            raise PermissionError("Access can only be granted to employees of your business")

    async def _load_user(self, user_id: str) -> Dict[str, Any]:
        user = await self._gateway.get_item(USERS, user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return user

    async def _mirror_strings(self, user: Dict[str, Any], module_id: str, access: bool, grant: bool) -> None:
        strings = MODULE_PERMISSION_STRINGS.get(module_id)
        if not strings:
            return
        permissions = [p for p in user.get("permissions") or [] if p not in strings.values()]
        if access:
            permissions.append(strings["access"])
        if grant:
            permissions.append(strings["grant"])
        await self._gateway.update_item(USERS, user["id"], {"permissions": permissions})

    async def grant(
        self, current_user: Dict[str, Any], module_id: str, user_id: str, can_grant: bool = False
    ) -> Dict[str, Any]:
        """Give a user access to a module, replacing any earlier record."""
        self._check_module(module_id)
        target = await self._load_user(user_id)
        await self._authorize(current_user, module_id, target)

        record = ModulePermission(
            id=record_id(user_id, module_id),
            user_id=user_id,
            module_id=module_id,
            can_access=True,
            can_grant_access=bool(can_grant),
            granted_by=current_user["id"],
            granted_at=utc_now_iso(),
        )
        stored = await self._gateway.upsert_item(COLLECTION, to_document(record))
        await self._mirror_strings(target, module_id, access=True, grant=bool(can_grant))
        logger.info(
            "Module %s granted to %s by %s", module_id, user_id, current_user["id"],
            extra={"can_grant": bool(can_grant)},
        )
        return stored

    async def revoke(self, current_user: Dict[str, Any], module_id: str, user_id: str) -> bool:
        self._check_module(module_id)
        target = await self._load_user(user_id)
        await self._authorize(current_user, module_id, target)

        removed = await self._gateway.delete_item(COLLECTION, record_id(user_id, module_id))
        await self._mirror_strings(target, module_id, access=False, grant=False)
        logger.info("Module %s revoked from %s by %s", module_id, user_id, current_user["id"])
        return removed

    async def list_grants(self, current_user: Dict[str, Any], module_id: str) -> List[Dict[str, Any]]:
        """Admins see every record; grantors see the records of their business's users."""
        self._check_module(module_id)
        records = await self._records_for_module(module_id)
        if current_user.get("role") == Role.ADMIN.value:
            return records

        own = [r for r in records if r.get("user_id") == current_user["id"]]
        if not can_grant_module_access(current_user, module_id, own):
            raise PermissionError(f"You cannot view grants for '{module_id}'")
        business_id: Optional[str] = current_user.get("business_id")
        users = await self._gateway.find(USERS, lambda u: u.get("business_id") == business_id)
        member_ids = {u["id"] for u in users}
        return [r for r in records if r.get("user_id") in member_ids]
