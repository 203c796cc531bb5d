"""
Local JSON store: the last-resort backend.

Server-side stand-in for the browser's localStorage. A single JSON file maps
versioned storage keys (``jobmanager_users_v3``, ``demo_emails``, ...) to
lists of documents. Reads are served from memory; every write rewrites the
file atomically.
"""
import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from ...core.errors import ItemAlreadyExistsError
from ...utils.async_utils import run_sync
from ..interfaces import StorageBackend
from .collections import get_collection

logger = logging.getLogger(__name__)


class LocalJsonBackend(StorageBackend):
    """File-backed implementation of ``StorageBackend``. Always available."""

    name = "local"

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._data: Optional[Dict[str, List[Dict[str, Any]]]] = None

    def _load(self) -> Dict[str, List[Dict[str, Any]]]:
        if self._data is not None:
            return self._data
        data: Dict[str, List[Dict[str, Any]]] = {}
        if self.path.exists():
            try:
                with self.path.open("r", encoding="utf-8") as handle:
                    raw = json.load(handle)
                if isinstance(raw, dict):
                    data = {k: v for k, v in raw.items() if isinstance(v, list)}
            except (OSError, ValueError) as exc:
                # A corrupt store is treated as empty, matching a cleared localStorage
                logger.error(
                    "Local store unreadable, starting empty",
                    exc_info=True,
                    extra={"path": str(self.path), "error": str(exc)},
                )
        self._data = data
        return data

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".local_store.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self._data, handle, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _items(self, collection: str) -> List[Dict[str, Any]]:
        key = get_collection(collection).storage_key
        return self._load().setdefault(key, [])

    @staticmethod
    def _index(items: List[Dict[str, Any]], item_id: str) -> int:
        for position, item in enumerate(items):
            if item.get("id") == item_id:
                return position
        return -1

    # Synchronous implementations, run in the threadpool

    def _list(self, collection: str) -> List[Dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._items(collection))

    def _get(self, collection: str, item_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            items = self._items(collection)
            position = self._index(items, item_id)
            return copy.deepcopy(items[position]) if position >= 0 else None

    def _create(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            items = self._items(collection)
            if self._index(items, document["id"]) >= 0:
                raise ItemAlreadyExistsError(collection, document["id"])
            items.append(copy.deepcopy(document))
            self._save()
            return copy.deepcopy(document)

    def _update(self, collection: str, item_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            items = self._items(collection)
            position = self._index(items, item_id)
            if position < 0:
                return None
            merged = {**items[position], **copy.deepcopy(updates), "id": item_id}
            items[position] = merged
            self._save()
            return copy.deepcopy(merged)

    def _upsert(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            items = self._items(collection)
            position = self._index(items, document["id"])
            if position < 0:
                items.append(copy.deepcopy(document))
            else:
                items[position] = copy.deepcopy(document)
            self._save()
            return copy.deepcopy(document)

    def _delete(self, collection: str, item_id: str) -> bool:
        with self._lock:
            items = self._items(collection)
            position = self._index(items, item_id)
            if position < 0:
                return False
            del items[position]
            self._save()
            return True

    def _clear(self, collection: str) -> int:
        with self._lock:
            items = self._items(collection)
            count = len(items)
            items.clear()
            self._save()
            return count

    # StorageBackend

    async def is_available(self) -> bool:
        return True

    async def list_items(self, collection: str) -> List[Dict[str, Any]]:
        return await run_sync(self._list, collection)

    async def get_item(self, collection: str, item_id: str) -> Optional[Dict[str, Any]]:
        return await run_sync(self._get, collection, item_id)

    async def create_item(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        return await run_sync(self._create, collection, document)

    async def update_item(
        self, collection: str, item_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        return await run_sync(self._update, collection, item_id, updates)

    async def upsert_item(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        return await run_sync(self._upsert, collection, document)

    async def delete_item(self, collection: str, item_id: str) -> bool:
        return await run_sync(self._delete, collection, item_id)

    async def clear(self, collection: str) -> int:
        """Remove every document of a collection. Returns how many were removed."""
        return await run_sync(self._clear, collection)
