"""
Service Interfaces - Abstract Base Classes for storage backends

Every place data can live (Cosmos DB, the remote REST API, the local JSON
store) implements the same contract so the data gateway can walk them in
order and fall back when one is unavailable.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List


class StorageBackend(ABC):
    """
    Interface for a document store addressed by collection name.

    Implementations raise ``BackendUnavailableError`` when they cannot be
    reached or are not configured. Any other answer, including "not found",
    is authoritative for the call.
    """

    name: str = "backend"

    @abstractmethod
    async def is_available(self) -> bool:
        """Cheap availability check, never raises."""
        pass

    @abstractmethod
    async def list_items(self, collection: str) -> List[Dict[str, Any]]:
        """Return every document in a collection."""
        pass

    @abstractmethod
    async def get_item(self, collection: str, item_id: str) -> Optional[Dict[str, Any]]:
        """Return one document or None when it does not exist."""
        pass

    @abstractmethod
    async def create_item(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new document. Raises ItemAlreadyExistsError on id clash."""
        pass

    @abstractmethod
    async def update_item(
        self, collection: str, item_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        """Merge updates into a document. Returns None when it does not exist."""
        pass

    @abstractmethod
    async def delete_item(self, collection: str, item_id: str) -> bool:
        """Delete a document. Returns False when it did not exist."""
        pass

    async def upsert_item(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """Create or fully replace a document."""
        existing = await self.get_item(collection, document["id"])
        if existing is None:
            return await self.create_item(collection, document)
        return await self.update_item(collection, document["id"], document) or document

    async def close(self) -> None:
        """Release held resources."""
        return None
