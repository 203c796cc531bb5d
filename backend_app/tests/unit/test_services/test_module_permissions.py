"""
Unit tests for feature-module permissions and role navigation.

Tests cover:
- has_module_access rules (admin, explicit grant, legacy vr_view)
- Granting and revoking with tenant scoping
- Mirroring of ar_camera_* strings onto the user
- Role-specific menu entries
"""

import pytest

from jobmanager.core.errors import PermissionError, ResourceNotFoundError, ValidationError
from jobmanager.models.permissions import (
    can_grant_module_access,
    has_module_access,
    has_permission,
    has_role_level,
    menu_items,
)


def _ids(items):
    return [item["id"] for item in items]


@pytest.mark.unit
@pytest.mark.critical
class TestModuleAccessRules:

    def test_admin_always_has_access(self, admin_user):
        assert has_module_access(admin_user, "ar-camera", [])
        assert can_grant_module_access(admin_user, "ar-camera", [])

    def test_no_record_no_access(self, business_user, employee_user):
        assert not has_module_access(business_user, "ar-camera", [])
        assert not has_module_access(employee_user, "ar-camera", [])

    def test_record_grants_access(self, business_user):
        records = [{"user_id": business_user["id"], "module_id": "ar-camera", "can_access": True}]
        assert has_module_access(business_user, "ar-camera", records)
        assert not can_grant_module_access(business_user, "ar-camera", records)

    def test_record_for_other_user_ignored(self, business_user):
        records = [{"user_id": "someone-else", "module_id": "ar-camera", "can_access": True}]
        assert not has_module_access(business_user, "ar-camera", records)

    def test_legacy_vr_view_employee(self, employee_user, business_user):
        employee = {**employee_user, "permissions": ["vr_view"]}
        manager = {**business_user, "permissions": ["vr_view"]}
        assert has_module_access(employee, "ar-camera", [])
        assert not has_module_access(manager, "ar-camera", [])

    def test_permission_helpers(self, admin_user, employee_user):
        assert has_permission(admin_user, "capture_signatures")
        assert has_permission(employee_user, "capture_signatures")
        assert not has_permission(employee_user, "manage_employees")
        assert has_role_level("admin", "business")
        assert not has_role_level("employee", "business")


@pytest.mark.unit
class TestMenuItems:

    def test_admin_menu(self, admin_user):
        items = menu_items(admin_user, {"ar-camera": True})
        assert len(items) == 9
        assert "ar-camera" in _ids(items)
        assert "module-permissions" in _ids(items)

    def test_business_menu_without_module(self, business_user):
        assert _ids(menu_items(business_user, {})) == [
            "dashboard", "employees", "jobs", "calendar", "reports", "customers",
        ]

    def test_business_menu_with_module(self, business_user):
        assert _ids(menu_items(business_user, {"ar-camera": True}))[-1] == "ar-camera"

    def test_employee_menu_places_ar_camera_after_capture(self, employee_user):
        assert _ids(menu_items(employee_user, {"ar-camera": True})) == [
            "dashboard", "jobs", "calendar", "tasks", "camera", "ar-camera",
            "emails", "notifications", "products",
        ]

    def test_unknown_role_has_no_menu(self):
        assert menu_items({"role": "guest"}, {}) == []


@pytest.mark.unit
@pytest.mark.critical
class TestPermissionService:

    @pytest.mark.asyncio
    async def test_admin_grants_business_user(self, populated_gateway, permission_service, admin_user, business_user):
        record = await permission_service.grant(admin_user, "ar-camera", business_user["id"], can_grant=True)

        assert record["id"] == f"ar-camera:{business_user['id']}"
        assert record["granted_by"] == admin_user["id"]
        access = await permission_service.get_access(business_user, "ar-camera")
        assert access == {"module_id": "ar-camera", "can_access": True, "can_grant": True}

        stored = await populated_gateway.get_item("users", business_user["id"])
        assert "ar_camera_access" in stored["permissions"]
        assert "ar_camera_grant" in stored["permissions"]

    @pytest.mark.asyncio
    async def test_grantor_grants_own_employee(
        self, populated_gateway, permission_service, admin_user, business_user, employee_user
    ):
        await permission_service.grant(admin_user, "ar-camera", business_user["id"], can_grant=True)

        await permission_service.grant(business_user, "ar-camera", employee_user["id"])

        access_map = await permission_service.module_access_map(employee_user)
        assert access_map == {"ar-camera": True}

    @pytest.mark.asyncio
    async def test_grantor_cannot_reach_other_business(
        self, populated_gateway, permission_service, admin_user, business_user, other_employee_user
    ):
        await permission_service.grant(admin_user, "ar-camera", business_user["id"], can_grant=True)

        with pytest.raises(PermissionError):
            await permission_service.grant(business_user, "ar-camera", other_employee_user["id"])

    @pytest.mark.asyncio
    async def test_grantor_cannot_grant_to_managers(
        self, populated_gateway, permission_service, admin_user, business_user, other_business_user
    ):
        await permission_service.grant(admin_user, "ar-camera", business_user["id"], can_grant=True)

        with pytest.raises(PermissionError):
            await permission_service.grant(business_user, "ar-camera", other_business_user["id"])

    @pytest.mark.asyncio
    async def test_user_without_grant_right(self, populated_gateway, permission_service, business_user, employee_user):
        with pytest.raises(PermissionError):
            await permission_service.grant(business_user, "ar-camera", employee_user["id"])

    @pytest.mark.asyncio
    async def test_revoke_removes_record_and_strings(
        self, populated_gateway, permission_service, admin_user, employee_user
    ):
        await permission_service.grant(admin_user, "ar-camera", employee_user["id"])

        assert await permission_service.revoke(admin_user, "ar-camera", employee_user["id"]) is True
        assert await permission_service.revoke(admin_user, "ar-camera", employee_user["id"]) is False

        stored = await populated_gateway.get_item("users", employee_user["id"])
        assert "ar_camera_access" not in stored["permissions"]
        assert (await permission_service.get_access(stored, "ar-camera"))["can_access"] is False

    @pytest.mark.asyncio
    async def test_list_grants_scoped_to_business(
        self, populated_gateway, permission_service, admin_user, business_user, employee_user, other_employee_user
    ):
        await permission_service.grant(admin_user, "ar-camera", business_user["id"], can_grant=True)
        await permission_service.grant(admin_user, "ar-camera", employee_user["id"])
        await permission_service.grant(admin_user, "ar-camera", other_employee_user["id"])

        all_grants = await permission_service.list_grants(admin_user, "ar-camera")
        own_grants = await permission_service.list_grants(business_user, "ar-camera")

        assert len(all_grants) == 3
        assert {g["user_id"] for g in own_grants} == {business_user["id"], employee_user["id"]}

    @pytest.mark.asyncio
    async def test_unknown_module_and_user(self, populated_gateway, permission_service, admin_user):
        with pytest.raises(ValidationError):
            await permission_service.get_access(admin_user, "hologram")
        with pytest.raises(ResourceNotFoundError):
            await permission_service.grant(admin_user, "ar-camera", "missing-user")
