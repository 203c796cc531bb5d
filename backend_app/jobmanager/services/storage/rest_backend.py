"""
Remote REST API backend: the secondary store.

Talks to ``{api_base_url}/{collection}[/{id}]`` with a bearer token. The API
may wrap entities in an envelope (``{"user": {...}}``, ``{"users": [...]}``)
or return them bare; both are accepted.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from ...core import http_client
from ...core.config import AppConfig
from ...core.errors import BackendUnavailableError, ItemAlreadyExistsError, StorageBackendError
from ..interfaces import StorageBackend
from .collections import get_collection

logger = logging.getLogger(__name__)


class RestApiBackend(StorageBackend):
    """httpx implementation of ``StorageBackend``."""

    name = "api"

    def __init__(self, config: AppConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_enabled)

    @property
    def base_url(self) -> str:
        return self.config.get_api_url()

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or http_client.get_client()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.api_token:
            headers["Authorization"] = f"Bearer {self.config.api_token}"
        return headers

    def _url(self, collection: str, item_id: Optional[str] = None) -> str:
        get_collection(collection)
        url = f"{self.base_url}/{collection.replace('_', '-')}"
        if item_id is not None:
            url = f"{url}/{item_id}"
        return url

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue the request, retrying transport failures (connect, read, timeouts) only."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.config.api_retry_attempts),
            wait=wait_fixed(self.config.api_retry_wait_seconds),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                return await self.client.request(
                    method,
                    url,
                    headers=self._headers(),
                    timeout=self.config.api_timeout_seconds,
                    **kwargs,
                )

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if not self.is_configured:
            raise BackendUnavailableError(self.name, "REST API disabled")
        try:
            response = await self._send(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(
                "REST API request failed",
                extra={"method": method, "url": url, "error": str(exc)},
            )
            raise BackendUnavailableError(self.name, f"{type(exc).__name__}: {exc}") from exc

        if response.status_code >= 500 or response.status_code in (401, 403):
            logger.warning(
                "REST API answered with an unusable status",
                extra={"method": method, "url": url, "status_code": response.status_code},
            )
            raise BackendUnavailableError(self.name, f"HTTP {response.status_code}")
        return response

    @staticmethod
    def _unwrap(payload: Any, *keys: str) -> Any:
        if isinstance(payload, dict):
            for key in keys:
                if key in payload:
                    return payload[key]
        return payload

    def _raise_for_answer(self, response: httpx.Response, collection: str, item_id: str = "") -> None:
        if response.status_code == 409:
            raise ItemAlreadyExistsError(collection, item_id)
        if response.status_code >= 400:
            raise StorageBackendError(
                f"REST API rejected request for '{collection}'",
                status_code=502,
                details={"backend": self.name, "status_code": response.status_code},
            )

    def _json(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendUnavailableError(self.name, "response was not JSON") from exc

    async def is_available(self) -> bool:
        if not self.is_configured:
            return False
        try:
            response = await self.client.get(
                f"{self.base_url}/health",
                headers=self._headers(),
                timeout=self.config.api_timeout_seconds,
            )
            return response.status_code < 500
        except httpx.HTTPError as exc:
            logger.debug("REST API availability check failed: %s", exc)
            return False

    async def list_items(self, collection: str) -> List[Dict[str, Any]]:
        spec = get_collection(collection)
        response = await self._request("GET", self._url(collection))
        self._raise_for_answer(response, collection)
        items = self._unwrap(self._json(response), spec.plural, "items", "data")
        if not isinstance(items, list):
            raise BackendUnavailableError(self.name, f"unexpected payload for '{collection}'")
        return items

    async def get_item(self, collection: str, item_id: str) -> Optional[Dict[str, Any]]:
        spec = get_collection(collection)
        response = await self._request("GET", self._url(collection, item_id))
        if response.status_code == 404:
            return None
        self._raise_for_answer(response, collection, item_id)
        return self._unwrap(self._json(response), spec.singular, "data")

    async def create_item(self, collection: str, document: Dict[str, Any]) -> Dict[str, Any]:
        spec = get_collection(collection)
        response = await self._request("POST", self._url(collection), json=document)
        self._raise_for_answer(response, collection, document.get("id", ""))
        created = self._unwrap(self._json(response), spec.singular, "data")
        return created if isinstance(created, dict) else document

    async def update_item(
        self, collection: str, item_id: str, updates: Dict[str, Any]
    ) -> Optional[Dict[str, Any]]:
        spec = get_collection(collection)
        response = await self._request("PUT", self._url(collection, item_id), json=updates)
        if response.status_code == 404:
            return None
        self._raise_for_answer(response, collection, item_id)
        updated = self._unwrap(self._json(response), spec.singular, "data")
        if isinstance(updated, dict) and updated.get("id") == item_id:
            return updated
        # 204 or an acknowledgement without the entity: read back the stored document
        return await self.get_item(collection, item_id)

    async def delete_item(self, collection: str, item_id: str) -> bool:
        response = await self._request("DELETE", self._url(collection, item_id))
        if response.status_code == 404:
            return False
        self._raise_for_answer(response, collection, item_id)
        return True
