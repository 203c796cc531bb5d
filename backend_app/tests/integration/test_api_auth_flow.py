"""
HTTP tests for login, session rehydration, navigation and logout.
"""

import pytest

from jobmanager.services.auth.demo_data import DEMO_EMPLOYEE_ID, DEMO_PASSWORD


@pytest.mark.integration
class TestRootAndErrors:

    def test_root_describes_api(self, api_client):
        response = api_client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "BlindsCloud"
        assert body["data_backends"] == ["local"]
        assert body["endpoints"]["authentication"]["login"] == "POST /api/auth/login"

    def test_missing_token_rejected(self, api_client):
        response = api_client.get("/api/auth/me")

        assert response.status_code in (401, 403)
        assert "error_code" in response.json()

    def test_garbage_token_rejected(self, api_client):
        response = api_client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTH_001"

    def test_request_validation_shape(self, api_client):
        response = api_client.post("/api/auth/login", json={"email": "admin@platform.com"})

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VAL_001"
        assert "details" in body


@pytest.mark.integration
@pytest.mark.critical
class TestLoginFlow:

    def test_login_returns_token_and_public_user(self, api_client):
        response = api_client.post(
            "/api/auth/login", json={"email": "Employee@Company.com", "password": DEMO_PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["access_token"]
        assert body["user"]["id"] == DEMO_EMPLOYEE_ID
        assert "hashed_password" not in body["user"]

    def test_wrong_password(self, api_client):
        response = api_client.post(
            "/api/auth/login", json={"email": "employee@company.com", "password": "nope"}
        )

        assert response.status_code == 401

    def test_me_rehydrates_session(self, api_client, manager_headers):
        response = api_client.get("/api/auth/me", headers=manager_headers)

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "business@company.com"
        assert user["role"] == "business"
        assert "hashed_password" not in user

    def test_logout_revokes_token(self, api_client, employee_headers):
        response = api_client.post("/api/auth/logout", headers=employee_headers)

        assert response.status_code == 200
        assert response.json()["revoked"] is True
        assert api_client.get("/api/auth/me", headers=employee_headers).status_code == 401

    def test_login_is_audited(self, api_client, admin_headers):
        response = api_client.get("/api/system/activity?action=login", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["count"] >= 1


@pytest.mark.integration
class TestNavigation:

    def test_admin_menu(self, api_client, admin_headers):
        body = api_client.get("/api/auth/me/navigation", headers=admin_headers).json()

        assert body["role"] == "admin"
        assert len(body["items"]) == 9
        assert body["modules"] == {"ar-camera": True}

    def test_employee_menu_gains_ar_camera_after_grant(self, api_client, admin_headers, employee_headers):
        before = api_client.get("/api/auth/me/navigation", headers=employee_headers).json()
        assert "ar-camera" not in [item["id"] for item in before["items"]]

        granted = api_client.post(
            "/api/modules/ar-camera/grants",
            json={"user_id": DEMO_EMPLOYEE_ID},
            headers=admin_headers,
        )
        assert granted.status_code == 201

        after = api_client.get("/api/auth/me/navigation", headers=employee_headers).json()
        ids = [item["id"] for item in after["items"]]
        assert ids.index("ar-camera") == ids.index("camera") + 1
        assert after["modules"]["ar-camera"] is True

        access = api_client.get("/api/modules/ar-camera/access", headers=employee_headers).json()
        assert access["can_access"] is True
        assert access["can_grant"] is False

    def test_revoke_grant(self, api_client, admin_headers, employee_headers):
        api_client.post(
            "/api/modules/ar-camera/grants", json={"user_id": DEMO_EMPLOYEE_ID}, headers=admin_headers
        )

        first = api_client.delete(f"/api/modules/ar-camera/grants/{DEMO_EMPLOYEE_ID}", headers=admin_headers)
        second = api_client.delete(f"/api/modules/ar-camera/grants/{DEMO_EMPLOYEE_ID}", headers=admin_headers)

        assert first.json()["removed"] is True
        assert second.json()["removed"] is False

    def test_unknown_module(self, api_client, admin_headers):
        response = api_client.get("/api/modules/hologram/access", headers=admin_headers)

        assert response.status_code == 400
