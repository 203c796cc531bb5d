"""
System Health Service - application info plus per-backend availability and latency
"""
import time
import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, TYPE_CHECKING

from ...core.config import AppConfig

if TYPE_CHECKING:
    from ..storage.gateway import DataGateway

logger = logging.getLogger(__name__)

_SERVICE_START = time.time()


class SystemHealthService:
    """Reports which data backends answer and how the fallback chain currently stands."""

    def __init__(self, gateway: "DataGateway", config: AppConfig):
        self._gateway = gateway
        self.config = config

    async def _check_backends(self) -> List[Dict[str, Any]]:
        results = []
        for position, backend in enumerate(self._gateway.backends):
            start = time.time()
            available = await backend.is_available()
            results.append({
                "name": backend.name,
                "position": position,
                "available": available,
                "response_time_ms": round((time.time() - start) * 1000, 2) if available else -1.0,
            })
        return results

    @staticmethod
    def _determine_overall_status(backends: List[Dict[str, Any]]) -> str:
        """healthy: primary answers; degraded: serving from a fallback; unhealthy: nothing answers."""
        if not backends or not any(b["available"] for b in backends):
            return "unhealthy"
        if backends[0]["available"]:
            return "healthy"
        return "degraded"

    async def get_system_health(self) -> Dict[str, Any]:
        backends = await self._check_backends()
        active = next((b["name"] for b in backends if b["available"]), None)
        status = self._determine_overall_status(backends)
        if status != "healthy":
            logger.warning("System health %s, active backend: %s", status, active)
        return {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(time.time() - _SERVICE_START, 1),
            "app": {
                "name": self.config.app_name,
                "version": self.config.app_version,
                "environment": self.config.environment,
            },
            "backends": backends,
            "active_backend": active,
            "last_backend": self._gateway.last_backend,
        }
