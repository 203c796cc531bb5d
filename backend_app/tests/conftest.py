"""
Shared pytest fixtures and configuration for JobManager Pro backend tests.

Services run against a real local JSON store in a temporary directory;
remote backends are replaced with mocks where a test needs them.
"""

import pytest
import pytest_asyncio
import os
from unittest.mock import Mock
from typing import Dict, Any

# Set test environment variables before importing app modules
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only-0123456789"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["ENVIRONMENT"] = "test"
os.environ["DATA_BACKENDS"] = "local"
os.environ["COSMOS_ENABLED"] = "false"
os.environ["API_ENABLED"] = "false"
os.environ["SEED_DEMO_DATA"] = "false"
os.environ["CONVERSION_STEP_DELAY_SECONDS"] = "0"
os.environ["API_RETRY_WAIT_SECONDS"] = "0"
os.environ.pop("SMTP_HOST", None)

from jobmanager.core.config import AppConfig, get_config
from jobmanager.models.domain import User, to_document
from jobmanager.models.permissions import DEFAULT_PERMISSIONS, Role
from jobmanager.services.analytics import DashboardService
from jobmanager.services.auth import AuthenticationService, PermissionService, hash_password
from jobmanager.services.businesses import BusinessService, CustomerService
from jobmanager.services.catalog import ARModelService, ProductService
from jobmanager.services.jobs import JobService
from jobmanager.services.messaging import EmailService, NotificationService
from jobmanager.services.monitoring import AuditLoggingService
from jobmanager.services.storage import DataGateway, LocalJsonBackend
from jobmanager.services.user_service import UserService


BUSINESS_ID = "biz-001"
OTHER_BUSINESS_ID = "biz-002"
TEST_PASSWORD = "secret123"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config(tmp_path):
    """AppConfig pointing the local store at a temporary file."""
    return AppConfig(local_store_path=str(tmp_path / "store.json"))


@pytest.fixture(autouse=True)
def clear_config_cache():
    get_config.cache_clear()
    yield
    get_config.cache_clear()


# ============================================================================
# Data Access Fixtures
# ============================================================================

@pytest.fixture
def local_backend(tmp_path):
    return LocalJsonBackend(str(tmp_path / "store.json"))


@pytest.fixture
def gateway(local_backend):
    """Gateway over the local store only."""
    return DataGateway([local_backend], local=local_backend)


# ============================================================================
# User Fixtures
# ============================================================================

def make_user(user_id: str, role: Role, business_id=None, **overrides) -> Dict[str, Any]:
    user = User(
        id=user_id,
        email=overrides.pop("email", f"{user_id}@example.com"),
        name=overrides.pop("name", user_id.replace("-", " ").title()),
        role=role,
        business_id=business_id,
        permissions=overrides.pop("permissions", list(DEFAULT_PERMISSIONS[role.value])),
        hashed_password=overrides.pop("hashed_password", None),
        **overrides,
    )
    return to_document(user)


@pytest.fixture
def user_password():
    """Plain-text password of every account in ``populated_gateway``."""
    return TEST_PASSWORD


@pytest.fixture
def admin_user():
    return make_user("admin-1", Role.ADMIN)


@pytest.fixture
def business_user():
    return make_user("manager-1", Role.BUSINESS, BUSINESS_ID)


@pytest.fixture
def employee_user():
    return make_user("employee-1", Role.EMPLOYEE, BUSINESS_ID)


@pytest.fixture
def other_business_user():
    return make_user("manager-2", Role.BUSINESS, OTHER_BUSINESS_ID)


@pytest.fixture
def other_employee_user():
    return make_user("employee-2", Role.EMPLOYEE, OTHER_BUSINESS_ID)


@pytest_asyncio.fixture
async def populated_gateway(
    gateway, admin_user, business_user, employee_user, other_business_user, other_employee_user
):
    """Gateway holding two businesses and one account per role."""
    password_hash = hash_password(TEST_PASSWORD)
    for business_id, name in ((BUSINESS_ID, "Acme Blinds"), (OTHER_BUSINESS_ID, "Other Shutters")):
        await gateway.create_item("businesses", {"id": business_id, "name": name})
    for user in (admin_user, business_user, employee_user, other_business_user, other_employee_user):
        await gateway.create_item("users", {**user, "hashed_password": password_hash})
    return gateway


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def email_service(gateway, test_config):
    return EmailService(gateway, test_config)


@pytest.fixture
def notification_service(gateway):
    return NotificationService(gateway)


@pytest.fixture
def customer_service(gateway):
    return CustomerService(gateway)


@pytest.fixture
def business_service(gateway):
    return BusinessService(gateway)


@pytest.fixture
def job_service(gateway, customer_service, notification_service):
    return JobService(gateway, customer_service, notification_service)


@pytest.fixture
def user_service(gateway, email_service):
    return UserService(gateway, email_service)


@pytest.fixture
def authentication_service(gateway):
    return AuthenticationService(gateway)


@pytest.fixture
def permission_service(gateway):
    return PermissionService(gateway)


@pytest.fixture
def product_service(gateway):
    return ProductService(gateway)


@pytest.fixture
def ar_model_service(gateway):
    return ARModelService(gateway, step_delay_seconds=0)


@pytest.fixture
def dashboard_service(gateway):
    return DashboardService(gateway)


@pytest.fixture
def audit_service(gateway):
    return AuditLoggingService(gateway)


# ===== Request Fixtures =====

@pytest.fixture
def mock_request():
    """Mock FastAPI request object"""
    request = Mock()
    request.headers = {"user-agent": "pytest-agent"}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    request.url = Mock()
    request.url.path = "/test"
    request.method = "GET"
    return request
