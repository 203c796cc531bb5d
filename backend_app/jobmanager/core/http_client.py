"""
Process-wide ``httpx.AsyncClient`` for the REST data backend.

Opened in the lifespan and closed on shutdown; per-request timeouts come
from ``api_timeout_seconds`` in the backend itself.
"""
from typing import Optional

import httpx

from .config import get_config

_client: Optional[httpx.AsyncClient] = None


def _build_client() -> httpx.AsyncClient:
    config = get_config()
    return httpx.AsyncClient(
        timeout=config.api_timeout_seconds,
        headers={"User-Agent": f"{config.app_name}/{config.app_version}"},
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
    )


def get_client() -> httpx.AsyncClient:
    """Shared client; created on first use if the lifespan has not opened it yet."""
    global _client
    if _client is None or _client.is_closed:
        _client = _build_client()
    return _client


async def startup() -> None:
    get_client()


async def shutdown() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
