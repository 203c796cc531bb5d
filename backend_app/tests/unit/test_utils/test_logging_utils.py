"""
Unit tests for the log formatter and the startup phase tracker.
"""

import logging

import pytest

from jobmanager.core.config import AppConfig
from jobmanager.utils.logging_config import ContextFormatter
from jobmanager.utils.startup_logging import StartupLogger


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("jobmanager.test", logging.ERROR, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestContextFormatter:

    def test_context_appended_sorted(self):
        formatter = ContextFormatter("%(message)s")

        text = formatter.format(_record("Failed to create job", context={"job_id": "J1", "action": "create job"}))

        assert text == "Failed to create job [action=create job job_id=J1]"

    def test_plain_record_unchanged(self):
        formatter = ContextFormatter("%(levelname)s %(message)s")

        assert formatter.format(_record("hello")) == "ERROR hello"


@pytest.mark.unit
class TestStartupLogger:

    def test_phases_tracked_in_order(self, caplog):
        startup = StartupLogger(logging.getLogger("tests.startup"))

        with caplog.at_level(logging.INFO, logger="tests.startup"):
            startup.start_startup("BlindsCloud")
            startup.start_phase("storage", "Building the data backend chain")
            startup.end_phase("storage", ok=False)
            startup.start_phase("seeding")
            startup.end_phase("seeding")
            startup.finish_startup()

        assert [p.name for p in startup.phases] == ["storage", "seeding"]
        assert [p.ok for p in startup.phases] == [False, True]
        assert "degraded: storage" in caplog.text

    def test_end_unknown_phase_is_ignored(self):
        startup = StartupLogger(logging.getLogger("tests.startup"))
        startup.start_startup()

        startup.end_phase("never-started")

        assert startup.phases == []

    def test_config_summary_lists_backend_order(self, caplog):
        startup = StartupLogger(logging.getLogger("tests.startup"))
        config = AppConfig(data_backends="cosmos,api,local", cosmos_enabled=False, api_enabled=False)

        with caplog.at_level(logging.INFO, logger="tests.startup"):
            startup.log_config_info(config)

        assert "cosmos -> api -> local" in caplog.text
