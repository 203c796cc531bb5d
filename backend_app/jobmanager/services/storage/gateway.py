"""
Data gateway: one data access layer over several backends.

Backends are tried in the configured order (by default Cosmos DB, then the
REST API, then the local JSON store). A backend that raises
``BackendUnavailableError`` is skipped; the first backend that answers is the
source of truth for that call, including a "not found" answer. Writes that
land on a remote backend are mirrored into the local store so a later
fallback read sees them.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from ...core.config import AppConfig
from ...core.errors import AllBackendsFailedError, BackendUnavailableError
from ..interfaces import StorageBackend
from .cosmos_backend import CosmosBackend
from .local_backend import LocalJsonBackend
from .rest_backend import RestApiBackend

logger = logging.getLogger(__name__)

T = TypeVar("T")
Predicate = Callable[[Dict[str, Any]], bool]


class DataGateway:
    """Walks the backend chain for every read and write."""

    def __init__(self, backends: List[StorageBackend], local: Optional[LocalJsonBackend] = None):
        if not backends:
            raise ValueError("DataGateway needs at least one backend")
        self.backends = list(backends)
        self.local = local
        self.last_backend: Optional[str] = None

    @property
    def backend_names(self) -> List[str]:
        return [backend.name for backend in self.backends]

    async def _call(
        self,
        operation: str,
        collection: str,
        action: Callable[[StorageBackend], Awaitable[T]],
    ) -> Tuple[T, StorageBackend]:
        failures: List[Dict[str, Any]] = []
        for backend in self.backends:
            try:
                result = await action(backend)
            except BackendUnavailableError as exc:
                failures.append({"backend": backend.name, "reason": exc.message})
                logger.warning(
                    "Backend %s unavailable for %s on %s, trying next",
                    backend.name,
                    operation,
                    collection,
                    extra={"backend": backend.name, "operation": operation, "collection": collection},
                )
                continue
            self.last_backend = backend.name
            if failures:
                logger.info(
                    "%s on %s served by %s after fallback",
                    operation,
                    collection,
                    backend.name,
                    extra={"failed_backends": [f["backend"] for f in failures]},
                )
            return result, backend

        logger.error(
            "Every data backend unavailable for %s on %s",
            operation,
            collection,
            extra={"failures": failures},
        )
        raise AllBackendsFailedError(operation, collection, failures)

    def _is_remote(self, backend: StorageBackend) -> bool:
        return self.local is not None and backend is not self.local

    async def _mirror(self, collection: str, document: Optional[Dict[str, Any]]) -> None:
        if not document or "id" not in document:
            return
        try:
            await self.local.upsert_item(collection, document)
        except OSError as exc:
            logger.warning(
                "Could not mirror %s/%s into local store: %s", collection, document.get("id"), exc
            )

    async def _mirror_update(self, collection: str, item_id: str, document: Dict[str, Any]) -> None:
        """Merge into the local copy so fields the remote did not echo back survive."""
        try:
            if await self.local.update_item(collection, item_id, document) is None:
                await self.local.upsert_item(collection, {**document, "id": item_id})
        except OSError as exc:
            logger.warning("Could not mirror %s/%s into local store: %s", collection, item_id, exc)

    async def _mirror_delete(self, collection: str, item_id: str) -> None:
        try:
            await self.local.delete_item(collection, item_id)
        except OSError as exc:
            logger.warning("Could not remove %s/%s from local store: %s", collection, item_id, exc)

    # Reads

    async def list_items(self, collection: str) -> List[Dict[str, Any]]:
        items, _ = await self._call("list", collection, lambda b: b.list_items(collection))
        return items

    async def get_item(self, collection: str, item_id: str) -> Optional[Dict[str, Any]]:
        item, _ = await self._call("read", collection, lambda b: b.get_item(collection, item_id))
        return item

    async def find(self, collection: str, predicate: Predicate) -> List[Dict[str, Any]]:
        return [item for item in await self.list_items(collection) if predicate(item)]

    async def find_one(self, collection: str, predicate: Predicate) -> Optional[Dict[str, Any]]:
        for item in await self.list_items(collection):
            if predicate(item):
                return item
        return None

    # Writes

    async def create_item(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        created, backend = await self._call(
            "create", collection, lambda b: b.create_item(collection, document)
        )
        if self._is_remote(backend):
            await self._mirror(collection, created)
        return created

    async def update_item(
        self, collection: str, item_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        updated, backend = await self._call(
            "update", collection, lambda b: b.update_item(collection, item_id, updates)
        )
        if updated is not None and self._is_remote(backend):
            await self._mirror_update(collection, item_id, updated)
        return updated

    async def upsert_item(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        stored, backend = await self._call(
            "upsert", collection, lambda b: b.upsert_item(collection, document)
        )
        if self._is_remote(backend):
            await self._mirror(collection, stored)
        return stored

    async def delete_item(self, collection: str, item_id: str) -> bool:
        deleted, backend = await self._call(
            "delete", collection, lambda b: b.delete_item(collection, item_id)
        )
        if self._is_remote(backend):
            await self._mirror_delete(collection, item_id)
        return deleted

    async def clear(self, collection: str) -> int:
        """Delete every document of a collection through the gateway."""
        removed = 0
        for item in await self.list_items(collection):
            if await self.delete_item(collection, item["id"]):
                removed += 1
        return removed

    # Status

    async def backend_status(self) -> List[Dict[str, Any]]:
        """Availability of every backend, in fallback order."""
        status = []
        for position, backend in enumerate(self.backends):
            available = await backend.is_available()
            status.append({"name": backend.name, "position": position, "available": available})
        return status

    async def close(self) -> None:
        for backend in self.backends:
            await backend.close()


def build_data_gateway(config: AppConfig) -> DataGateway:
    """Assemble the backend chain from configuration. The local store is always last."""
    local = LocalJsonBackend(config.local_store_path)
    backends: List[StorageBackend] = []
    for name in config.data_backends_list:
        if name == "cosmos" and config.cosmos_enabled:
            backends.append(CosmosBackend(config))
        elif name == "api" and config.api_enabled:
            backends.append(RestApiBackend(config))
    backends.append(local)
    logger.info("Data backend order: %s", ", ".join(b.name for b in backends))
    return DataGateway(backends, local=local)
