"""User management.

Keeps the router code thin and centralizes validation, tenant scoping and
the side effects of user changes (welcome and password emails).
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..core.errors import (
    ApplicationError,
    ConflictError,
    PermissionError,
    ResourceNotFoundError,
    ValidationError,
)
from ..models.domain import User, to_document, utc_now_iso
from ..models.permissions import EMPLOYEE_ASSIGNABLE_PERMISSIONS, Role, default_permissions_for
from ..utils.input_validation import InputValidator
from .auth.authentication_service import hash_password

if TYPE_CHECKING:
    from .messaging.email_service import EmailService
    from .storage.gateway import DataGateway

logger = logging.getLogger(__name__)

USERS = "users"
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2
# Fields a user may change on their own profile
SELF_EDITABLE_FIELDS = {"email", "password", "name"}


class UserService:
    def __init__(self, gateway: "DataGateway", email_service: "EmailService"):
        self._gateway = gateway
        self._email = email_service

    # === Validation ===

    @staticmethod
    def validate_email(email: str) -> str:
        normalized = InputValidator.normalize_email(email)
        if not InputValidator.validate_email(normalized):
            raise ValidationError("A valid email address is required", field="email")
        return normalized

    @staticmethod
    def validate_password(password: str) -> None:
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters", field="password"
            )

    @staticmethod
    def validate_name(name: str) -> str:
        if not InputValidator.validate_string_length(name, MIN_NAME_LENGTH, 100):
            raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters", field="name")
        if InputValidator.contains_dangerous_patterns(name):
            raise ValidationError("Name contains invalid content", field="name")
        return name.strip()

    @staticmethod
    def validate_role(role: Any) -> str:
        value = getattr(role, "value", role)
        if value not in {r.value for r in Role}:
            raise ValidationError("Role must be one of admin, business, employee", field="role")
        return value

    async def _ensure_unique_email(self, email: str, exclude_id: Optional[str] = None) -> None:
        existing = await self._gateway.find_one(
            USERS,
            lambda u: InputValidator.normalize_email(u.get("email")) == email and u.get("id") != exclude_id,
        )
        if existing is not None:
            raise ConflictError(f"A user with email {email} already exists", details={"field": "email"})

    # === Scoping ===

    @staticmethod
    def _manages(current_user: Dict[str, Any], target: Dict[str, Any]) -> bool:
        """Admins manage everyone; business users manage employees of their business."""
        role = current_user.get("role")
        if role == Role.ADMIN.value:
            return True
        return (
            role == Role.BUSINESS.value
            and bool(current_user.get("business_id"))
            and target.get("role") == Role.EMPLOYEE.value
            and target.get("business_id") == current_user.get("business_id")
        )

    @staticmethod
    def _check_assignable(current_user: Dict[str, Any], requested: List[str], held: Optional[List[str]] = None) -> None:
        """Only admins hand out arbitrary permissions. Already held ones may be kept."""
        if current_user.get("role") == Role.ADMIN.value:
            return
        outside = set(requested) - EMPLOYEE_ASSIGNABLE_PERMISSIONS - set(held or [])
        if outside:
            raise PermissionError(
                "You cannot assign these permissions", details={"permissions": sorted(outside)}
            )

    async def _load(self, user_id: str) -> Dict[str, Any]:
        user = await self._gateway.get_item(USERS, user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)
        return user

    async def _business_name(self, business_id: Optional[str]) -> Optional[str]:
        if not business_id:
            return None
        business = await self._gateway.get_item("businesses", business_id)
        return business.get("name") if business else None

    # === Queries ===

    async def list_users(self, current_user: Dict[str, Any], role: Optional[str] = None) -> List[Dict[str, Any]]:
        users = await self._gateway.list_items(USERS)
        if current_user.get("role") == Role.ADMIN.value:
            visible = users
        elif current_user.get("role") == Role.BUSINESS.value:
            business_id = current_user.get("business_id")
            visible = [u for u in users if business_id and u.get("business_id") == business_id]
        else:
            visible = [u for u in users if u.get("id") == current_user.get("id")]
        if role:
            visible = [u for u in visible if u.get("role") == role]
        visible.sort(key=lambda u: u.get("created_at") or "", reverse=True)
        return visible

    async def get_user(self, current_user: Dict[str, Any], user_id: str) -> Dict[str, Any]:
        user = await self._load(user_id)
        if user_id != current_user.get("id") and not self._manages(current_user, user):
            raise PermissionError("You cannot view this user")
        return user

    # === Commands ===

    async def create_user(self, current_user: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a user.

        Admins may create any role in any business. Business users create
        employees of their own business, with themselves as parent.
        """
        creator_role = current_user.get("role")
        if creator_role not in (Role.ADMIN.value, Role.BUSINESS.value):
            raise PermissionError("Only admins and business users can create users")

        email = self.validate_email(data.get("email", ""))
        password = data.get("password") or ""
        self.validate_password(password)
        name = self.validate_name(data.get("name", ""))
        role = self.validate_role(data.get("role") or Role.EMPLOYEE.value)
        business_id = data.get("business_id")
        parent_id = None

        if creator_role == Role.BUSINESS.value:
            role = Role.EMPLOYEE.value
            business_id = current_user.get("business_id")
            parent_id = current_user["id"]
            if not business_id:
                raise ValidationError("Your account is not linked to a business", field="business_id")
        elif business_id and await self._gateway.get_item("businesses", business_id) is None:
            raise ResourceNotFoundError("Business", business_id)

        await self._ensure_unique_email(email)

        permissions = data.get("permissions")
        if permissions:
            self._check_assignable(current_user, permissions)
        else:
            permissions = default_permissions_for(role)

        user = User(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            role=role,
            business_id=business_id,
            parent_id=parent_id,
            permissions=list(permissions),
            created_at=utc_now_iso(),
            is_active=True,
            email_verified=False,
            created_by=current_user["id"],
            hashed_password=hash_password(password),
        )
        created = await self._gateway.create_item(USERS, to_document(user))
        logger.info("User %s created by %s", created["id"], current_user["id"], extra={"role": role})

        try:
            await self._email.send_welcome_email(created, await self._business_name(business_id))
        except ApplicationError as exc:
            logger.warning("Welcome email for %s failed: %s", created["id"], exc)
        return created

    async def update_user(
        self, current_user: Dict[str, Any], user_id: str, data: Dict[str, Any]
    ) -> Dict[str, Any]:
        target = await self._load(user_id)
        is_self = user_id == current_user.get("id")
        is_admin = current_user.get("role") == Role.ADMIN.value

        if not is_self and not self._manages(current_user, target):
            raise PermissionError("You cannot edit this user")

        if not is_admin:
            restricted = set(data) - SELF_EDITABLE_FIELDS
            if is_self:
                if restricted:
                    raise PermissionError(
                        "You cannot change your own role, business or permissions",
                        details={"fields": sorted(restricted)},
                    )
            else:
                # Business users keep their employees inside the business as employees
                if data.get("role") not in (None, Role.EMPLOYEE.value) or (
                    "business_id" in data and data["business_id"] != target.get("business_id")
                ):
                    raise PermissionError("Employees cannot be moved to another role or business")

        updates: Dict[str, Any] = {}
        if "email" in data and data["email"] is not None:
            email = self.validate_email(data["email"])
            if email != InputValidator.normalize_email(target.get("email")):
                await self._ensure_unique_email(email, exclude_id=user_id)
            updates["email"] = email
        if data.get("name") is not None:
            updates["name"] = self.validate_name(data["name"])
        if data.get("role") is not None:
            updates["role"] = self.validate_role(data["role"])
        if "business_id" in data:
            if data["business_id"] and await self._gateway.get_item("businesses", data["business_id"]) is None:
                raise ResourceNotFoundError("Business", data["business_id"])
            updates["business_id"] = data["business_id"]
        if data.get("permissions") is not None:
            self._check_assignable(current_user, data["permissions"], target.get("permissions") or [])
            updates["permissions"] = list(data["permissions"])
        if data.get("is_active") is not None:
            if is_self and not data["is_active"]:
                raise ValidationError("You cannot deactivate your own account", field="is_active")
            updates["is_active"] = bool(data["is_active"])

        password_changed = False
        if data.get("password"):
            self.validate_password(data["password"])
            updates["hashed_password"] = hash_password(data["password"])
            password_changed = True

        if not updates:
            return target

        updated = await self._gateway.update_item(USERS, user_id, updates)
        if updated is None:
            raise ResourceNotFoundError("User", user_id)
        logger.info(
            "User %s updated by %s", user_id, current_user["id"],
            extra={"fields": sorted(k for k in updates if k != "hashed_password")},
        )

        if password_changed:
            try:
                await self._email.send_password_reset_email(updated)
            except ApplicationError as exc:
                logger.warning("Password change email for %s failed: %s", user_id, exc)
        return updated

    async def delete_user(self, current_user: Dict[str, Any], user_id: str) -> None:
        if user_id == current_user.get("id"):
            raise ValidationError("You cannot delete your own account", field="user_id")
        target = await self._load(user_id)
        if not self._manages(current_user, target):
            raise PermissionError("You cannot delete this user")

        await self._gateway.delete_item(USERS, user_id)
        for record in await self._gateway.find("module_permissions", lambda r: r.get("user_id") == user_id):
            await self._gateway.delete_item("module_permissions", record["id"])
        logger.info("User %s deleted by %s", user_id, current_user["id"])
