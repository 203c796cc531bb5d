"""
Unit tests for the data gateway (Cosmos -> REST API -> local fallback).

Tests cover:
- Skipping unavailable backends in order
- Authoritative "not found" answers
- Mirroring remote writes into the local store
- All backends failing
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, Mock

from jobmanager.core.config import AppConfig
from jobmanager.core.errors import (
    AllBackendsFailedError,
    BackendUnavailableError,
    ItemAlreadyExistsError,
)
from jobmanager.services.storage import (
    CosmosBackend,
    DataGateway,
    LocalJsonBackend,
    RestApiBackend,
    build_data_gateway,
)


def remote_backend(name: str) -> Mock:
    """Mock remote backend whose every operation succeeds with empty answers."""
    backend = Mock()
    backend.name = name
    backend.is_available = AsyncMock(return_value=True)
    backend.list_items = AsyncMock(return_value=[])
    backend.get_item = AsyncMock(return_value=None)
    backend.create_item = AsyncMock(side_effect=lambda collection, doc: doc)
    backend.update_item = AsyncMock(return_value=None)
    backend.upsert_item = AsyncMock(side_effect=lambda collection, doc: doc)
    backend.delete_item = AsyncMock(return_value=True)
    backend.close = AsyncMock()
    return backend


def down_backend(name: str) -> Mock:
    backend = remote_backend(name)
    unavailable = AsyncMock(side_effect=BackendUnavailableError(name, "connection refused"))
    for method in ("list_items", "get_item", "create_item", "update_item", "upsert_item", "delete_item"):
        setattr(backend, method, unavailable)
    backend.is_available = AsyncMock(return_value=False)
    return backend


@pytest.mark.unit
@pytest.mark.critical
class TestFallbackOrder:

    @pytest.mark.asyncio
    async def test_first_available_backend_answers(self, local_backend):
        cosmos = remote_backend("cosmos")
        cosmos.list_items.return_value = [{"id": "u1"}]
        api = remote_backend("api")
        gateway = DataGateway([cosmos, api, local_backend], local=local_backend)

        assert await gateway.list_items("users") == [{"id": "u1"}]
        assert gateway.last_backend == "cosmos"
        api.list_items.assert_not_called()

    @pytest.mark.asyncio
    async def test_falls_through_to_local(self, local_backend):
        await local_backend.create_item("users", {"id": "local-user"})
        gateway = DataGateway(
            [down_backend("cosmos"), down_backend("api"), local_backend], local=local_backend
        )

        users = await gateway.list_items("users")

        assert users == [{"id": "local-user"}]
        assert gateway.last_backend == "local"

    @pytest.mark.asyncio
    async def test_not_found_is_authoritative(self, local_backend):
        await local_backend.create_item("jobs", {"id": "JOB-000001"})
        cosmos = remote_backend("cosmos")
        gateway = DataGateway([cosmos, local_backend], local=local_backend)

        assert await gateway.get_item("jobs", "JOB-000001") is None
        assert gateway.last_backend == "cosmos"

    @pytest.mark.asyncio
    async def test_backend_errors_other_than_unavailable_propagate(self, local_backend):
        cosmos = remote_backend("cosmos")
        cosmos.create_item = AsyncMock(side_effect=ItemAlreadyExistsError("users", "u1"))
        gateway = DataGateway([cosmos, local_backend], local=local_backend)

        with pytest.raises(ItemAlreadyExistsError):
            await gateway.create_item("users", {"id": "u1"})
        assert await local_backend.get_item("users", "u1") is None

    @pytest.mark.asyncio
    async def test_all_backends_failed(self):
        gateway = DataGateway([down_backend("cosmos"), down_backend("api")])

        with pytest.raises(AllBackendsFailedError) as exc_info:
            await gateway.list_items("jobs")

        error = exc_info.value
        assert error.status_code == 503
        assert [f["backend"] for f in error.details["failures"]] == ["cosmos", "api"]

    def test_requires_a_backend(self):
        with pytest.raises(ValueError):
            DataGateway([])


@pytest.mark.unit
class TestLocalMirroring:

    @pytest.mark.asyncio
    async def test_remote_create_mirrored(self, local_backend):
        gateway = DataGateway([remote_backend("api"), local_backend], local=local_backend)

        await gateway.create_item("customers", {"id": "c1", "name": "Ann"})

        assert await local_backend.get_item("customers", "c1") == {"id": "c1", "name": "Ann"}

    @pytest.mark.asyncio
    async def test_remote_update_mirrored(self, local_backend):
        api = remote_backend("api")
        api.update_item.return_value = {"id": "c1", "name": "Anne"}
        gateway = DataGateway([api, local_backend], local=local_backend)

        await gateway.update_item("customers", "c1", {"name": "Anne"})

        assert await local_backend.get_item("customers", "c1") == {"id": "c1", "name": "Anne"}

    @pytest.mark.asyncio
    async def test_partial_remote_update_merged_into_local_copy(self, local_backend):
        await local_backend.create_item("jobs", {"id": "JOB-1", "title": "Fit blinds", "business_id": "b1"})
        api = remote_backend("api")
        api.update_item.return_value = {"id": "JOB-1", "status": "in-progress"}
        gateway = DataGateway([api, local_backend], local=local_backend)

        await gateway.update_item("jobs", "JOB-1", {"status": "in-progress"})

        assert await local_backend.get_item("jobs", "JOB-1") == {
            "id": "JOB-1", "title": "Fit blinds", "business_id": "b1", "status": "in-progress",
        }

    @pytest.mark.asyncio
    async def test_bodyless_rest_update_keeps_full_document(self, local_backend):
        remote_job = {"id": "JOB-1", "title": "Fit blinds", "business_id": "b1", "status": "pending"}
        await local_backend.create_item("jobs", dict(remote_job))

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "PUT":
                remote_job.update(json.loads(request.content))
                return httpx.Response(204)
            return httpx.Response(200, json={"job": remote_job})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        api = RestApiBackend(AppConfig(api_enabled=True, api_base_url="https://api.test/api"), client=client)
        gateway = DataGateway([api, local_backend], local=local_backend)

        updated = await gateway.update_item("jobs", "JOB-1", {"status": "in-progress"})

        assert updated["title"] == "Fit blinds"
        mirrored = await local_backend.get_item("jobs", "JOB-1")
        assert mirrored["business_id"] == "b1"
        assert mirrored["status"] == "in-progress"

    @pytest.mark.asyncio
    async def test_remote_delete_mirrored(self, local_backend):
        await local_backend.create_item("customers", {"id": "c1"})
        gateway = DataGateway([remote_backend("cosmos"), local_backend], local=local_backend)

        assert await gateway.delete_item("customers", "c1") is True
        assert await local_backend.get_item("customers", "c1") is None

    @pytest.mark.asyncio
    async def test_local_write_not_duplicated(self, local_backend):
        gateway = DataGateway([down_backend("cosmos"), local_backend], local=local_backend)

        await gateway.create_item("jobs", {"id": "JOB-000002"})

        assert await local_backend.list_items("jobs") == [{"id": "JOB-000002"}]


@pytest.mark.unit
class TestGatewayHelpers:

    @pytest.mark.asyncio
    async def test_find_and_find_one(self, gateway):
        await gateway.create_item("users", {"id": "a", "role": "admin"})
        await gateway.create_item("users", {"id": "b", "role": "employee"})
        await gateway.create_item("users", {"id": "c", "role": "employee"})

        employees = await gateway.find("users", lambda u: u["role"] == "employee")
        admin = await gateway.find_one("users", lambda u: u["role"] == "admin")

        assert [u["id"] for u in employees] == ["b", "c"]
        assert admin["id"] == "a"
        assert await gateway.find_one("users", lambda u: u["role"] == "business") is None

    @pytest.mark.asyncio
    async def test_clear(self, gateway):
        await gateway.create_item("emails", {"id": "e1"})
        await gateway.create_item("emails", {"id": "e2"})

        assert await gateway.clear("emails") == 2
        assert await gateway.list_items("emails") == []

    @pytest.mark.asyncio
    async def test_backend_status(self, local_backend):
        gateway = DataGateway([down_backend("cosmos"), local_backend], local=local_backend)

        status = await gateway.backend_status()

        assert status == [
            {"name": "cosmos", "position": 0, "available": False},
            {"name": "local", "position": 1, "available": True},
        ]

    @pytest.mark.asyncio
    async def test_close_closes_every_backend(self, local_backend):
        api = remote_backend("api")
        gateway = DataGateway([api, local_backend], local=local_backend)

        await gateway.close()

        api.close.assert_awaited_once()


@pytest.mark.unit
class TestBuildDataGateway:

    def test_disabled_remotes_skipped(self, tmp_path):
        config = AppConfig(
            data_backends="cosmos,api,local",
            cosmos_enabled=False,
            api_enabled=False,
            local_store_path=str(tmp_path / "store.json"),
        )

        gateway = build_data_gateway(config)

        assert gateway.backend_names == ["local"]
        assert gateway.local is gateway.backends[-1]

    def test_configured_order(self, tmp_path):
        config = AppConfig(
            data_backends="api,cosmos",
            cosmos_enabled=True,
            api_enabled=True,
            local_store_path=str(tmp_path / "store.json"),
        )

        gateway = build_data_gateway(config)

        assert gateway.backend_names == ["api", "cosmos", "local"]
        assert isinstance(gateway.backends[0], RestApiBackend)
        assert isinstance(gateway.backends[1], CosmosBackend)
        assert isinstance(gateway.backends[2], LocalJsonBackend)
