from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional


class Role(str, Enum):
    """User roles in hierarchical order"""
    EMPLOYEE = "employee"
    BUSINESS = "business"
    ADMIN = "admin"


# Role hierarchy (higher number = more authority)
ROLE_HIERARCHY = {
    Role.EMPLOYEE.value: 1,
    Role.BUSINESS.value: 2,
    Role.ADMIN.value: 3,
}

ALL_PERMISSIONS = "all"

# Default permission lists handed to new users of each role
DEFAULT_PERMISSIONS: Dict[str, List[str]] = {
    Role.ADMIN.value: [ALL_PERMISSIONS],
    Role.BUSINESS.value: [
        "manage_employees",
        "view_dashboard",
        "create_jobs",
        "manage_customers",
    ],
    Role.EMPLOYEE.value: [
        "create_jobs",
        "manage_tasks",
        "capture_signatures",
        "view_calendar",
    ],
}

# What a business user may hand to an employee; module access only comes from grants
EMPLOYEE_ASSIGNABLE_PERMISSIONS = frozenset(DEFAULT_PERMISSIONS[Role.EMPLOYEE.value])

# Feature modules that can be granted per user
AR_CAMERA_MODULE = "ar-camera"
KNOWN_MODULES = (AR_CAMERA_MODULE,)
LEGACY_VR_PERMISSION = "vr_view"

# Permission strings mirrored onto the user when a module grant changes
MODULE_PERMISSION_STRINGS: Dict[str, Dict[str, str]] = {
    AR_CAMERA_MODULE: {"access": "ar_camera_access", "grant": "ar_camera_grant"},
}


def get_role_level(role: Optional[str]) -> int:
    """
    Get the numeric level for a role string.

    Returns 0 for unknown roles.
    """
    return ROLE_HIERARCHY.get(role or "", 0)


def has_role_level(user_role: Optional[str], required_role: str) -> bool:
    """Check if a role is at least as privileged as the required one."""
    return get_role_level(user_role) >= get_role_level(required_role)


def default_permissions_for(role: str) -> List[str]:
    return list(DEFAULT_PERMISSIONS.get(role, []))


def has_permission(user: Mapping[str, Any], permission: str) -> bool:
    """True when the user holds ``all`` or the named permission."""
    permissions = user.get("permissions") or []
    return ALL_PERMISSIONS in permissions or permission in permissions


def _record_for(user_id: str, module_id: str, records: Iterable[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    for record in records:
        if record.get("user_id") == user_id and record.get("module_id") == module_id:
            return record
    return None


def has_module_access(
    user: Mapping[str, Any], module_id: str, records: Iterable[Mapping[str, Any]]
) -> bool:
    """
    Whether a user may use a feature module.

    Admins always may. Other users need an explicit record with
    ``can_access``. For the AR camera, employees holding the older
    ``vr_view`` (or ``all``) permission keep their access.
    """
    if user.get("role") == Role.ADMIN.value:
        return True
    record = _record_for(user.get("id"), module_id, records)
    if record and record.get("can_access"):
        return True
    if module_id == AR_CAMERA_MODULE and user.get("role") == Role.EMPLOYEE.value:
        permissions = user.get("permissions") or []
        return LEGACY_VR_PERMISSION in permissions or ALL_PERMISSIONS in permissions
    return False


def can_grant_module_access(
    user: Mapping[str, Any], module_id: str, records: Iterable[Mapping[str, Any]]
) -> bool:
    """Admins always may grant; others need a record with ``can_grant_access``."""
    if user.get("role") == Role.ADMIN.value:
        return True
    record = _record_for(user.get("id"), module_id, records)
    return bool(record and record.get("can_grant_access"))


def _item(item_id: str, label: str) -> Dict[str, str]:
    return {"id": item_id, "label": label}


def menu_items(user: Mapping[str, Any], module_access: Mapping[str, bool]) -> List[Dict[str, str]]:
    """Role-specific navigation entries. ``module_access`` maps module id to access."""
    role = user.get("role")
    ar_camera = module_access.get(AR_CAMERA_MODULE, False)

    if role == Role.ADMIN.value:
        return [
            _item("dashboard", "Dashboard"),
            _item("users", "User Management"),
            _item("businesses", "Businesses"),
            _item("products", "Products"),
            _item("ar-camera", "AR Camera"),
            _item("module-permissions", "Module Permissions"),
            _item("permissions", "Permissions"),
            _item("reports", "Reports"),
            _item("html-manager", "HTML Manager"),
        ]
    if role == Role.BUSINESS.value:
        items = [
            _item("dashboard", "Dashboard"),
            _item("employees", "Employees"),
            _item("jobs", "Jobs"),
            _item("calendar", "Calendar"),
            _item("reports", "Reports"),
            _item("customers", "Customers"),
        ]
        if ar_camera:
            items.append(_item("ar-camera", "AR Camera"))
        return items
    if role == Role.EMPLOYEE.value:
        items = [
            _item("dashboard", "Dashboard"),
            _item("jobs", "Jobs"),
            _item("calendar", "Calendar"),
            _item("tasks", "Tasks"),
            _item("camera", "Capture"),
        ]
        if ar_camera:
            items.append(_item("ar-camera", "AR Camera"))
        items.extend([
            _item("emails", "Emails"),
            _item("notifications", "Notifications"),
            _item("products", "Product Viewer"),
        ])
        return items
    return []
