"""
HTTP tests for the job lifecycle, field actions and customers.
"""

import pytest

from jobmanager.services.auth.demo_data import DEMO_BUSINESS_ID, DEMO_EMPLOYEE_ID


def _create_job(client, headers, **overrides):
    payload = {
        "title": "Fit roller blinds",
        "employee_id": DEMO_EMPLOYEE_ID,
        "quotation": 450.0,
        "customer": {"name": "Jane Smith", "postcode": "sw1a 1aa"},
        **overrides,
    }
    response = client.post("/api/jobs", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["job"]


@pytest.mark.integration
@pytest.mark.critical
class TestJobLifecycle:

    def test_manager_creates_job_with_inline_customer(self, api_client, manager_headers, employee_headers):
        job = _create_job(api_client, manager_headers)

        assert job["id"].startswith("JOB-")
        assert job["status"] == "pending"
        assert job["business_id"] == DEMO_BUSINESS_ID
        assert len(job["checklist"]) > 0

        customer = api_client.get(f"/api/customers/{job['customer_id']}", headers=manager_headers).json()["customer"]
        assert customer["postcode"] == "SW1A 1AA"

        notes = api_client.get("/api/notifications", headers=employee_headers).json()
        assert notes["unread"] == 1
        assert notes["notifications"][0]["type"] == "job"

    def test_status_moves_and_rejects_invalid(self, api_client, manager_headers):
        job = _create_job(api_client, manager_headers)
        url = f"/api/jobs/{job['id']}/status"

        started = api_client.put(url, json={"status": "in-progress"}, headers=manager_headers)
        assert started.status_code == 200
        assert started.json()["job"]["status"] == "in-progress"

        back = api_client.put(url, json={"status": "pending"}, headers=manager_headers)
        assert back.status_code == 409
        assert back.json()["error_code"] == "BIZ_002"

        done = api_client.put(url, json={"status": "completed"}, headers=manager_headers)
        assert done.json()["job"]["completed_date"]

    def test_unknown_status_is_validation_error(self, api_client, manager_headers):
        job = _create_job(api_client, manager_headers)

        response = api_client.put(
            f"/api/jobs/{job['id']}/status", json={"status": "archived"}, headers=manager_headers
        )

        assert response.status_code == 422

    def test_list_includes_caller_permission(self, api_client, manager_headers, employee_headers):
        _create_job(api_client, manager_headers)

        manager_view = api_client.get("/api/jobs", headers=manager_headers).json()
        employee_view = api_client.get("/api/jobs?status=pending", headers=employee_headers).json()

        assert manager_view["count"] == 1
        assert manager_view["jobs"][0]["user_permission"] == "delete"
        assert employee_view["jobs"][0]["user_permission"] == "edit"
        assert api_client.get("/api/jobs?status=completed", headers=employee_headers).json()["count"] == 0

    def test_employee_cannot_delete(self, api_client, manager_headers, employee_headers):
        job = _create_job(api_client, manager_headers)

        assert api_client.delete(f"/api/jobs/{job['id']}", headers=employee_headers).status_code == 403
        assert api_client.delete(f"/api/jobs/{job['id']}", headers=manager_headers).json()["job_id"] == job["id"]
        assert api_client.get(f"/api/jobs/{job['id']}", headers=manager_headers).status_code == 404


@pytest.mark.integration
class TestFieldActions:

    def test_employee_works_the_job(self, api_client, manager_headers, employee_headers):
        job = _create_job(api_client, manager_headers)
        base = f"/api/jobs/{job['id']}"
        first_item = job["checklist"][0]["id"]

        toggled = api_client.post(f"{base}/checklist/{first_item}/toggle", headers=employee_headers)
        assert toggled.json()["job"]["checklist"][0]["completed"] is True

        signed = api_client.post(f"{base}/signature", json={"signature": "data:image/png;base64,SIG"},
                                 headers=employee_headers)
        assert signed.json()["job"]["signature"] == "data:image/png;base64,SIG"

        for _ in range(2):
            attached = api_client.post(f"{base}/attachments", json={"kind": "image", "reference": "/img/1.jpg"},
                                       headers=employee_headers)
        assert attached.json()["job"]["images"] == ["/img/1.jpg"]

        invoiced = api_client.put(f"{base}/invoice", json={"invoice": 480.0}, headers=employee_headers)
        assert invoiced.json()["job"]["invoice"] == 480.0

    def test_manager_without_signature_permission(self, api_client, manager_headers):
        job = _create_job(api_client, manager_headers)

        response = api_client.post(
            f"/api/jobs/{job['id']}/signature", json={"signature": "sig"}, headers=manager_headers
        )

        assert response.status_code == 403

    def test_negative_invoice_rejected_at_boundary(self, api_client, manager_headers):
        job = _create_job(api_client, manager_headers)

        response = api_client.put(f"/api/jobs/{job['id']}/invoice", json={"invoice": -1}, headers=manager_headers)

        assert response.status_code == 422


@pytest.mark.integration
class TestCustomersApi:

    def test_employee_cannot_create_customer_directly(self, api_client, employee_headers):
        response = api_client.post("/api/customers", json={"name": "Walk-in"}, headers=employee_headers)

        assert response.status_code == 403

    def test_manager_creates_and_searches(self, api_client, manager_headers):
        created = api_client.post(
            "/api/customers", json={"name": "Alice", "email": "Alice@Example.com"}, headers=manager_headers
        )
        assert created.status_code == 201

        found = api_client.get("/api/customers?search=alice@", headers=manager_headers).json()
        assert [c["name"] for c in found["customers"]] == ["Alice"]
