"""
Unit tests for dashboards, the activity log, system health and demo data.
"""

import logging

import pytest
from unittest.mock import AsyncMock, Mock

from jobmanager.core.config import AppConfig
from jobmanager.core.errors import StorageBackendError
from jobmanager.services.analytics import compute_job_stats, job_revenue
from jobmanager.services.auth.demo_data import (
    DEMO_ADMIN_ID,
    DEMO_BUSINESS_ID,
    DEMO_PASSWORD,
    seed_demo_data,
)
from jobmanager.services.auth import AuthenticationService
from jobmanager.services.monitoring import AuditLoggingService, SystemHealthService
from jobmanager.services.storage import DataGateway


def _job(job_id, status, business_id="biz-001", **extra):
    return {"id": job_id, "title": job_id, "status": status, "business_id": business_id, **extra}


@pytest.mark.unit
class TestJobStats:

    def test_revenue_prefers_invoice(self):
        assert job_revenue({"invoice": 300, "quotation": 250}) == 300.0
        assert job_revenue({"invoice": None, "quotation": 250}) == 250.0
        assert job_revenue({}) == 0.0

    def test_counts_and_completed_revenue(self):
        jobs = [
            _job("a", "completed", invoice=120.5),
            _job("b", "completed", quotation=80),
            _job("c", "pending", quotation=1000),
            _job("d", "in-progress"),
            _job("e", "cancelled"),
            _job("f", "confirmed", quotation=500),
        ]

        stats = compute_job_stats(jobs, active_employees=3)

        assert stats.total_jobs == 6
        assert stats.completed_jobs == 2
        assert stats.pending_jobs == 1
        assert stats.in_progress_jobs == 1
        assert stats.confirmed_jobs == 1
        assert stats.cancelled_jobs == 1
        assert stats.total_revenue == 200.5
        assert stats.active_employees == 3


@pytest.mark.unit
class TestDashboardService:

    @pytest.mark.asyncio
    async def test_business_dashboard_scoped(self, populated_gateway, dashboard_service, business_user, employee_user):
        await populated_gateway.create_item("jobs", _job("JOB-000001", "completed", quotation=100, created_at="2024-01-01"))
        await populated_gateway.create_item(
            "jobs", _job("JOB-000002", "pending", employee_id=employee_user["id"], created_at="2024-01-02")
        )
        await populated_gateway.create_item("jobs", _job("JOB-000003", "completed", business_id="biz-002", quotation=999))

        dashboard = await dashboard_service.get_dashboard(business_user)

        assert dashboard["stats"]["total_jobs"] == 2
        assert dashboard["stats"]["total_revenue"] == 100.0
        assert dashboard["stats"]["active_employees"] == 1
        recent = dashboard["recent_jobs"]
        assert [j["id"] for j in recent] == ["JOB-000002", "JOB-000001"]
        assert recent[0]["employee"] == employee_user["name"]
        assert recent[1]["customer"] == "Unknown Customer"

    @pytest.mark.asyncio
    async def test_recent_jobs_capped(self, populated_gateway, dashboard_service, business_user):
        for i in range(6):
            await populated_gateway.create_item("jobs", _job(f"JOB-00000{i}", "pending", created_at=f"2024-01-0{i + 1}"))

        dashboard = await dashboard_service.get_dashboard(business_user)

        assert len(dashboard["recent_jobs"]) == 4

    @pytest.mark.asyncio
    async def test_admin_dashboard(self, populated_gateway, dashboard_service, audit_service, admin_user):
        await populated_gateway.create_item("jobs", _job("JOB-000001", "completed", invoice=50))
        await audit_service.log_activity(admin_user["id"], "login")

        dashboard = await dashboard_service.get_dashboard(admin_user)

        assert dashboard["users"] == {
            "total": 5, "active": 5, "by_role": {"employee": 2, "business": 2, "admin": 1},
        }
        assert dashboard["businesses"] == 2
        assert dashboard["stats"]["total_revenue"] == 50.0
        assert dashboard["stats"]["active_employees"] == 2
        assert dashboard["recent_activity"][0]["action"] == "login"


@pytest.mark.unit
class TestAuditLogging:

    @pytest.mark.asyncio
    async def test_log_activity_records_request_context(self, audit_service, mock_request, admin_user):
        activity_id = await audit_service.log_activity(
            admin_user["id"], "job_created", "job", "JOB-000001", request=mock_request, details={"title": "x"}
        )

        entries = await audit_service.list_activity()
        assert entries[0]["id"] == activity_id
        assert entries[0]["ip_address"] == "127.0.0.1"
        assert entries[0]["details"] == {"title": "x"}

    @pytest.mark.asyncio
    async def test_filters_and_limit(self, audit_service):
        await audit_service.log_activity("u1", "login")
        await audit_service.log_activity("u2", "login")
        await audit_service.log_activity("u1", "logout")

        assert len(await audit_service.list_activity(user_id="u1")) == 2
        assert len(await audit_service.list_activity(action="login")) == 2
        assert len(await audit_service.list_activity(limit=1)) == 1

    @pytest.mark.asyncio
    async def test_storage_failure_is_not_fatal(self):
        gateway = Mock()
        gateway.create_item = AsyncMock(side_effect=StorageBackendError("down"))

        assert await AuditLoggingService(gateway).log_activity(None, "login_failed") is None


@pytest.mark.unit
class TestSystemHealth:

    @staticmethod
    def _backend(name, available):
        backend = Mock()
        backend.name = name
        backend.is_available = AsyncMock(return_value=available)
        return backend

    @pytest.mark.asyncio
    @pytest.mark.parametrize("availability,expected,active", [
        ((True, True), "healthy", "cosmos"),
        ((False, True), "degraded", "local"),
        ((False, False), "unhealthy", None),
    ])
    async def test_overall_status(self, availability, expected, active):
        gateway = DataGateway([self._backend("cosmos", availability[0]), self._backend("local", availability[1])])
        service = SystemHealthService(gateway, AppConfig())

        health = await service.get_system_health()

        assert health["status"] == expected
        assert health["active_backend"] == active
        assert [b["name"] for b in health["backends"]] == ["cosmos", "local"]
        assert health["app"]["name"] == "BlindsCloud"


@pytest.mark.unit
@pytest.mark.critical
class TestDemoData:

    @pytest.mark.asyncio
    async def test_seeds_empty_store_once(self, gateway):
        created = await seed_demo_data(gateway)

        assert created == {"businesses": 1, "users": 3, "products": 1, "ar_models": 2}
        assert await seed_demo_data(gateway) == {}

        business = await gateway.get_item("businesses", DEMO_BUSINESS_ID)
        assert business["name"] == "Demo Blinds Company"

    @pytest.mark.asyncio
    async def test_demo_accounts_can_log_in(self, gateway):
        await seed_demo_data(gateway)
        service = AuthenticationService(gateway)

        result = await service.login("admin@platform.com", DEMO_PASSWORD)
        assert result["user"]["id"] == DEMO_ADMIN_ID

        for email in ("business@company.com", "employee@company.com"):
            result = await service.login(email, DEMO_PASSWORD)
            assert result["user"]["business_id"] == DEMO_BUSINESS_ID

    @pytest.mark.asyncio
    async def test_seeding_logs_counts_at_info(self, gateway, caplog):
        with caplog.at_level(logging.INFO, logger="jobmanager.services.auth.demo_data"):
            created = await seed_demo_data(gateway)

        record = next(r for r in caplog.records if r.getMessage() == "Demo data seeded")
        assert record.seeded == created
