"""
Unit tests for the error classes and the router error handler.
"""

import logging

import pytest

from jobmanager.core.errors import (
    AllBackendsFailedError,
    ApplicationError,
    DefaultErrorHandler,
    ErrorCode,
    InvalidTransitionError,
    ResourceNotFoundError,
    StorageBackendError,
    ValidationError,
)


@pytest.mark.unit
class TestErrorClasses:

    def test_subclasses_carry_status_and_code(self):
        error = ResourceNotFoundError("Job", "JOB-000001")

        assert error.status_code == 404
        assert error.as_dict() == {
            "message": "Job 'JOB-000001' not found",
            "error_code": "RES_001",
            "details": {"resource_type": "Job", "resource_id": "JOB-000001"},
        }

    def test_validation_field_in_details(self):
        error = ValidationError("Name too short", field="name", details={"min_length": 2})

        assert error.details == {"min_length": 2, "field": "name"}
        assert error.status_code == 400

    def test_transition_error(self):
        error = InvalidTransitionError("completed", "pending", details={"job_id": "JOB-1"})

        assert error.status_code == 409
        assert error.error_code is ErrorCode.INVALID_STATUS_TRANSITION
        assert error.details["current_status"] == "completed"
        assert error.details["job_id"] == "JOB-1"

    def test_instance_overrides(self):
        plain = StorageBackendError("disk full")
        rejected = StorageBackendError("rejected", status_code=502)

        assert plain.status_code == 500
        assert plain.error_code is ErrorCode.EXTERNAL_SERVICE_ERROR
        assert rejected.status_code == 502
        assert AllBackendsFailedError("list", "jobs", []).status_code == 503


@pytest.mark.unit
class TestDefaultErrorHandler:

    def test_raise_internal_hides_exception_text(self, caplog):
        handler = DefaultErrorHandler(
            lambda: logging.getLogger("tests.errors"), base_context={"path": "/api/jobs"}
        )

        with caplog.at_level(logging.ERROR, logger="tests.errors"):
            with pytest.raises(ApplicationError) as exc_info:
                handler.raise_internal("create job", RuntimeError("cosmos key leaked"), extra={"job_id": "J1"})

        error = exc_info.value
        assert error.status_code == 500
        assert error.message == "Failed to create job"
        assert set(error.details) == {"action", "incident_id"}
        assert "cosmos key leaked" not in str(error.as_dict())

        record = caplog.records[0]
        assert error.details["incident_id"] in record.getMessage()
        assert record.context["path"] == "/api/jobs"
        assert record.context["job_id"] == "J1"
        assert isinstance(error.__cause__, RuntimeError)
