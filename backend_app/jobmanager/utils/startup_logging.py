"""Startup progress log: one line per phase, a timing table at the end."""

import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional


@dataclass
class StartupPhase:
    name: str
    started: float
    finished: Optional[float] = None
    ok: bool = True

    @property
    def elapsed_ms(self) -> float:
        return ((self.finished or time.perf_counter()) - self.started) * 1000


class StartupLogger:
    """
    Tracks the lifespan phases (configuration, storage, seeding, validation).

    A phase that ends with ``ok=False`` is reported as degraded; startup
    continues unless the caller stops it.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._began: Optional[float] = None
        self.phases: List[StartupPhase] = []

    def _phase(self, name: str) -> Optional[StartupPhase]:
        return next((p for p in reversed(self.phases) if p.name == name), None)

    def start_startup(self, app_name: str = "BlindsCloud") -> None:
        self._began = time.perf_counter()
        self.phases = []
        self._logger.info("🚀 Starting %s API", app_name)

    def start_phase(self, name: str, description: Optional[str] = None) -> None:
        self.phases.append(StartupPhase(name=name, started=time.perf_counter()))
        self._logger.info("🏁 %s%s", name, f": {description}" if description else "")

    def end_phase(self, name: str, ok: bool = True) -> None:
        phase = self._phase(name)
        if phase is None or phase.finished is not None:
            return
        phase.finished = time.perf_counter()
        phase.ok = ok
        self._logger.info("%s %s done in %.1fms", "✅" if ok else "⚠️", name, phase.elapsed_ms)

    def log_config_info(self, config) -> None:
        """Where data will be read from and written to."""
        self._logger.info(
            "⚙️ environment=%s backends=%s local_store=%s",
            config.environment,
            " -> ".join(config.data_backends_list),
            config.local_store_path,
        )
        if config.cosmos_enabled and config.cosmos_endpoint:
            self._logger.info("  Cosmos: %s (database %s)", config.cosmos_endpoint, config.cosmos_database)
        if config.api_enabled and config.api_base_url:
            self._logger.info("  REST API: %s", config.api_base_url)

    def finish_startup(self, success: bool = True) -> None:
        if self._began is None:
            return
        degraded = [p.name for p in self.phases if not p.ok]
        self._logger.info(
            "%s Startup %s in %.1fms%s",
            "🎉" if success else "❌",
            "completed" if success else "aborted",
            (time.perf_counter() - self._began) * 1000,
            f" (degraded: {', '.join(degraded)})" if degraded else "",
        )
        for phase in self.phases:
            self._logger.info("  %-12s %8.1fms", phase.name, phase.elapsed_ms)


@lru_cache(maxsize=1)
def get_startup_logger() -> StartupLogger:
    return StartupLogger(logging.getLogger("jobmanager.startup"))
