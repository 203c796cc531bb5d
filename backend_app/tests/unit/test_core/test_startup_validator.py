"""
Unit tests for the startup validator.

Remote backends being down only warns; an empty chain or missing JWT
secret stops startup.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from jobmanager.core.config import AppConfig
from jobmanager.core.health import StartupValidationError, StartupValidator
from jobmanager.services.storage import DataGateway


def _backend(name: str, available: bool) -> Mock:
    backend = Mock()
    backend.name = name
    backend.is_available = AsyncMock(return_value=available)
    return backend


@pytest.fixture
def healthy_config():
    return AppConfig(cosmos_enabled=False, seed_demo_data=False)


@pytest.mark.unit
@pytest.mark.critical
class TestStartupValidator:

    @pytest.mark.asyncio
    async def test_local_only_chain_is_healthy(self, gateway, healthy_config):
        result = await StartupValidator(gateway, healthy_config).validate_all(fail_fast=True)

        assert result.is_healthy
        assert result.validations_run == 3
        assert result.validations_passed == 3
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_unavailable_remote_is_warning(self, local_backend, healthy_config):
        gateway = DataGateway([_backend("cosmos", False), local_backend], local=local_backend)

        result = await StartupValidator(gateway, healthy_config).validate_all(fail_fast=True)

        assert result.is_healthy
        assert any("cosmos" in w.message for w in result.warnings)

    @pytest.mark.asyncio
    async def test_no_backend_available_is_critical(self, healthy_config):
        gateway = DataGateway([_backend("cosmos", False), _backend("api", False)])

        with pytest.raises(StartupValidationError) as exc_info:
            await StartupValidator(gateway, healthy_config).validate_all(fail_fast=True)

        messages = [e.message for e in exc_info.value.result.errors]
        assert "No data backend is available" in messages

    @pytest.mark.asyncio
    async def test_empty_secret_is_critical(self, gateway):
        config = AppConfig(jwt_secret_key="", cosmos_enabled=False)

        result = await StartupValidator(gateway, config).validate_all(fail_fast=False)

        assert not result.is_healthy
        assert result.errors[0].component == "Configuration"

    @pytest.mark.asyncio
    async def test_default_secret_in_production_is_critical(self, gateway):
        config = AppConfig(
            jwt_secret_key="change-me", environment="production", cosmos_enabled=False, seed_demo_data=False
        )

        result = await StartupValidator(gateway, config).validate_all(fail_fast=False)

        assert not result.is_healthy
        assert "Default JWT secret" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_short_secret_and_missing_endpoint_warn(self, gateway):
        config = AppConfig(jwt_secret_key="short", cosmos_enabled=True, cosmos_endpoint=None)

        result = await StartupValidator(gateway, config).validate_all(fail_fast=False)

        assert result.is_healthy
        messages = [w.message for w in result.warnings]
        assert "JWT secret is shorter than recommended" in messages
        assert "Cosmos DB enabled but no endpoint configured" in messages

    @pytest.mark.asyncio
    async def test_crashing_check_becomes_critical(self, healthy_config):
        gateway = Mock()
        gateway.backend_status = AsyncMock(side_effect=RuntimeError("boom"))

        result = await StartupValidator(gateway, healthy_config).validate_all(fail_fast=False)

        assert not result.is_healthy
        assert "crashed" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_health_check_shape(self, gateway, healthy_config):
        report = await StartupValidator(gateway, healthy_config).health_check()

        assert report["status"] == "healthy"
        assert report["checks"]["total"] == 3
        assert report["errors"] == []

    @pytest.mark.asyncio
    async def test_half_configured_smtp_warns(self, gateway):
        config = AppConfig(
            cosmos_enabled=False, seed_demo_data=False, smtp_host="smtp.example.com", smtp_username="mailer"
        )

        result = await StartupValidator(gateway, config).validate_all(fail_fast=True)

        assert result.is_healthy
        email_warnings = [w for w in result.warnings if w.component == "Email"]
        assert [w.message for w in email_warnings] == ["SMTP username and password must be set together"]
