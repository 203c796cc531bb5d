"""
Unit tests for the local JSON store.

Tests cover:
- CRUD semantics (duplicate ids, missing items, merges)
- Versioned storage keys in the file layout
- Persistence across instances and corrupt-file recovery
"""

import json
import pytest

from jobmanager.core.errors import ItemAlreadyExistsError
from jobmanager.services.storage import LocalJsonBackend


@pytest.mark.unit
@pytest.mark.critical
class TestLocalBackendCrud:

    @pytest.mark.asyncio
    async def test_create_and_get(self, local_backend):
        await local_backend.create_item("jobs", {"id": "JOB-000001", "title": "Fit blinds"})

        job = await local_backend.get_item("jobs", "JOB-000001")

        assert job == {"id": "JOB-000001", "title": "Fit blinds"}

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, local_backend):
        await local_backend.create_item("users", {"id": "u1"})

        with pytest.raises(ItemAlreadyExistsError) as exc_info:
            await local_backend.create_item("users", {"id": "u1"})

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, local_backend):
        assert await local_backend.get_item("users", "missing") is None

    @pytest.mark.asyncio
    async def test_update_merges_and_keeps_id(self, local_backend):
        await local_backend.create_item("customers", {"id": "c1", "name": "Ann", "postcode": "AB1"})

        updated = await local_backend.update_item("customers", "c1", {"name": "Anne", "id": "other"})

        assert updated == {"id": "c1", "name": "Anne", "postcode": "AB1"}

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, local_backend):
        assert await local_backend.update_item("customers", "nope", {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_upsert_replaces_whole_document(self, local_backend):
        await local_backend.create_item("products", {"id": "p1", "name": "Roller", "price": 10})

        await local_backend.upsert_item("products", {"id": "p1", "name": "Roman"})

        assert await local_backend.get_item("products", "p1") == {"id": "p1", "name": "Roman"}

    @pytest.mark.asyncio
    async def test_delete_reports_existence(self, local_backend):
        await local_backend.create_item("notifications", {"id": "n1"})

        assert await local_backend.delete_item("notifications", "n1") is True
        assert await local_backend.delete_item("notifications", "n1") is False

    @pytest.mark.asyncio
    async def test_clear_returns_count(self, local_backend):
        for i in range(3):
            await local_backend.create_item("emails", {"id": f"email-{i}"})

        assert await local_backend.clear("emails") == 3
        assert await local_backend.list_items("emails") == []

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self, local_backend):
        await local_backend.create_item("jobs", {"id": "j1", "images": []})

        job = await local_backend.get_item("jobs", "j1")
        job["images"].append("photo.jpg")

        assert (await local_backend.get_item("jobs", "j1"))["images"] == []

    @pytest.mark.asyncio
    async def test_unknown_collection_raises(self, local_backend):
        with pytest.raises(KeyError):
            await local_backend.list_items("invoices")


@pytest.mark.unit
class TestLocalBackendFile:

    @pytest.mark.asyncio
    async def test_versioned_storage_keys(self, tmp_path):
        path = tmp_path / "store.json"
        backend = LocalJsonBackend(str(path))

        await backend.create_item("users", {"id": "u1"})
        await backend.create_item("emails", {"id": "e1"})
        await backend.create_item("module_permissions", {"id": "ar-camera:u1"})

        data = json.loads(path.read_text())
        assert data["jobmanager_users_v3"] == [{"id": "u1"}]
        assert data["demo_emails"] == [{"id": "e1"}]
        assert data["module_permissions_v1"] == [{"id": "ar-camera:u1"}]

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "store.json")
        await LocalJsonBackend(path).create_item("businesses", {"id": "b1", "name": "Acme"})

        reloaded = LocalJsonBackend(path)

        assert await reloaded.get_item("businesses", "b1") == {"id": "b1", "name": "Acme"}

    @pytest.mark.asyncio
    async def test_corrupt_file_treated_as_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")
        backend = LocalJsonBackend(str(path))

        assert await backend.list_items("users") == []
        await backend.create_item("users", {"id": "u1"})
        assert json.loads(path.read_text())["jobmanager_users_v3"] == [{"id": "u1"}]

    @pytest.mark.asyncio
    async def test_always_available(self, tmp_path):
        backend = LocalJsonBackend(str(tmp_path / "missing" / "store.json"))
        assert await backend.is_available() is True
