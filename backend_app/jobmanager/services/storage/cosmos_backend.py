"""
Cosmos DB backend: the primary database.

One container per collection (``{cosmos_prefix}{collection}``), partitioned
on ``/id``. Documents carry a ``type`` discriminator like the rest of the
platform's Cosmos data. The SDK is synchronous so every call goes through
``run_sync``.
"""
import logging
from typing import Any, Dict, List, Optional

from azure.core.exceptions import AzureError
from azure.cosmos import ContainerProxy, CosmosClient, PartitionKey
from azure.cosmos.exceptions import (
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)
from azure.identity import DefaultAzureCredential

from ...core.config import AppConfig
from ...core.errors import BackendUnavailableError, ItemAlreadyExistsError
from ...utils.async_utils import run_sync
from ..interfaces import StorageBackend
from .collections import COLLECTIONS, get_collection

logger = logging.getLogger(__name__)

_SYSTEM_FIELDS = ("_rid", "_self", "_etag", "_attachments", "_ts")


def _clean(document: Dict[str, Any]) -> Dict[str, Any]:
    """Strip Cosmos system properties and the type discriminator."""
    return {k: v for k, v in document.items() if k not in _SYSTEM_FIELDS and k != "type"}


class CosmosBackend(StorageBackend):
    """Cosmos DB implementation of ``StorageBackend``."""

    name = "cosmos"

    def __init__(self, config: AppConfig, client: Optional[CosmosClient] = None):
        self.config = config
        self._client = client
        self._database = None
        self._containers: Dict[str, ContainerProxy] = {}

    @property
    def is_configured(self) -> bool:
        if self._client is not None:
            return True
        return bool(self.config.cosmos_enabled and self.config.cosmos_endpoint)

    def _unavailable(self, reason: str, exc: Optional[Exception] = None) -> BackendUnavailableError:
        if exc is not None:
            logger.warning(
                "Cosmos DB unavailable: %s",
                reason,
                extra={"endpoint": self.config.cosmos_endpoint, "error": str(exc)},
            )
        return BackendUnavailableError(self.name, reason)

    @property
    def client(self) -> CosmosClient:
        """Lazy-initialize the Cosmos client (key auth, else DefaultAzureCredential)."""
        if not self.is_configured:
            raise self._unavailable("Cosmos DB endpoint not configured")
        if self._client is None:
            endpoint = self.config.cosmos_endpoint
            if self.config.cosmos_key:
                logger.info("Using Cosmos key auth for client initialization")
                self._client = CosmosClient(url=endpoint, credential=self.config.cosmos_key)
            else:
                logger.info("No Cosmos key configured; attempting DefaultAzureCredential")
                self._client = CosmosClient(url=endpoint, credential=DefaultAzureCredential())
        return self._client

    @property
    def database(self):
        if self._database is None:
            self._database = self.client.get_database_client(self.config.cosmos_database)
        return self._database

    def container_name(self, collection: str) -> str:
        get_collection(collection)
        return f"{self.config.cosmos_prefix}{collection}"

    def get_container(self, collection: str) -> ContainerProxy:
        """Get container reference with caching"""
        if collection not in self._containers:
            self._containers[collection] = self.database.get_container_client(
                self.container_name(collection)
            )
        return self._containers[collection]

    async def is_available(self) -> bool:
        if not self.is_configured:
            return False
        try:
            await run_sync(self.database.read)
            return True
        except (AzureError, ValueError) as exc:
            logger.warning("Cosmos DB availability check failed", extra={"error": str(exc)})
            return False

    async def ensure_containers(self) -> List[str]:
        """Create the database and any missing containers. Returns the container names."""
        if not self.is_configured:
            raise self._unavailable("Cosmos DB endpoint not configured")
        try:
            self._database = await run_sync(
                self.client.create_database_if_not_exists, id=self.config.cosmos_database
            )
            created = []
            for collection in COLLECTIONS:
                name = self.container_name(collection)
                self._containers[collection] = await run_sync(
                    self._database.create_container_if_not_exists,
                    id=name,
                    partition_key=PartitionKey(path="/id"),
                )
                created.append(name)
            logger.info("Cosmos containers ready", extra={"containers": created})
            return created
        except AzureError as exc:
            raise self._unavailable("could not create containers", exc) from exc

    async def list_items(self, collection: str) -> List[Dict[str, Any]]:
        spec = get_collection(collection)
        try:
            container = self.get_container(collection)
            items = await run_sync(
                lambda: list(
                    container.query_items(
                        query="SELECT * FROM c WHERE c.type = @type",
                        parameters=[{"name": "@type", "value": spec.doc_type}],
                        enable_cross_partition_query=True,
                    )
                )
            )
            return [_clean(item) for item in items]
        except CosmosResourceNotFoundError as exc:
            raise self._unavailable(f"container for '{collection}' is missing", exc) from exc
        except AzureError as exc:
            raise self._unavailable(f"failed to list '{collection}'", exc) from exc

    async def get_item(self, collection: str, item_id: str) -> Optional[Dict[str, Any]]:
        try:
            container = self.get_container(collection)
            item = await run_sync(container.read_item, item=item_id, partition_key=item_id)
            return _clean(item)
        except CosmosResourceNotFoundError:
            return None
        except AzureError as exc:
            raise self._unavailable(f"failed to read '{collection}/{item_id}'", exc) from exc

    async def create_item(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        spec = get_collection(collection)
        body = dict(document)
        body["type"] = spec.doc_type
        try:
            container = self.get_container(collection)
            created = await run_sync(container.create_item, body=body)
            return _clean(created)
        except CosmosResourceExistsError:
            raise ItemAlreadyExistsError(collection, document.get("id", ""))
        except AzureError as exc:
            raise self._unavailable(f"failed to create in '{collection}'", exc) from exc

    async def update_item(
        self, collection: str, item_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        spec = get_collection(collection)
        try:
            container = self.get_container(collection)
            existing = await run_sync(container.read_item, item=item_id, partition_key=item_id)
            existing.update(updates)
            existing["id"] = item_id
            existing["type"] = spec.doc_type
            replaced = await run_sync(container.replace_item, item=item_id, body=existing)
            return _clean(replaced)
        except CosmosResourceNotFoundError:
            return None
        except AzureError as exc:
            raise self._unavailable(f"failed to update '{collection}/{item_id}'", exc) from exc

    async def delete_item(self, collection: str, item_id: str) -> bool:
        try:
            container = self.get_container(collection)
            await run_sync(container.delete_item, item=item_id, partition_key=item_id)
            return True
        except CosmosResourceNotFoundError:
            # Not found is not an error for delete operations
            return False
        except AzureError as exc:
            raise self._unavailable(f"failed to delete '{collection}/{item_id}'", exc) from exc
