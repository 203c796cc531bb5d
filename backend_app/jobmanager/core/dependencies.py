"""
Dependency injection for the JobManager Pro API.
Services are built once per process (cached providers) and handed to routers via Depends.
"""
from functools import lru_cache
from typing import Dict, Any, Callable, TYPE_CHECKING
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import logging

from .config import AppConfig, get_config
from .errors import AuthenticationError, PermissionError
from .errors.handler import DefaultErrorHandler, ErrorHandler
from .jwt_utils import decode_token, TokenDecodeError
from ..models.permissions import Role
from ..services.auth.authentication_service import AuthenticationService
from ..services.monitoring.audit_logging_service import AuditLoggingService
from ..services.storage.gateway import DataGateway, build_data_gateway

if TYPE_CHECKING:
    from ..services.analytics.dashboard_service import DashboardService
    from ..services.auth.permission_service import PermissionService
    from ..services.businesses.business_service import BusinessService
    from ..services.businesses.customer_service import CustomerService
    from ..services.catalog.ar_model_service import ARModelService
    from ..services.catalog.product_service import ProductService
    from ..services.jobs.job_service import JobService
    from ..services.messaging.email_service import EmailService
    from ..services.messaging.notification_service import NotificationService
    from ..services.monitoring.system_health_service import SystemHealthService
    from ..services.user_service import UserService


logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_error_handler(request: Request) -> ErrorHandler:
    """Provide a request-scoped error handler with structured context."""

    endpoint = request.scope.get("endpoint")
    module_name = getattr(endpoint, "__module__", "jobmanager") if endpoint else "jobmanager"
    logger_name = f"{module_name}.errors"
    base_context = {
        "path": request.url.path,
        "method": request.method,
    }
    return DefaultErrorHandler(lambda: logging.getLogger(logger_name), base_context=base_context)


# === Configuration Dependencies ===
def get_app_config() -> AppConfig:
    return get_config()


# === Data Access ===
@lru_cache()
def _build_data_gateway() -> DataGateway:
    return build_data_gateway(get_config())


def get_data_gateway() -> DataGateway:
    """Get the cached data gateway (backend chain)."""
    return _build_data_gateway()


# === Service Providers ===

@lru_cache()
def _build_authentication_service() -> AuthenticationService:
    return AuthenticationService(get_data_gateway())


def get_authentication_service() -> AuthenticationService:
    return _build_authentication_service()


@lru_cache()
def _build_audit_logging_service() -> AuditLoggingService:
    return AuditLoggingService(get_data_gateway())


def get_audit_logging_service() -> AuditLoggingService:
    return _build_audit_logging_service()


@lru_cache()
def _build_email_service() -> "EmailService":
    from ..services.messaging.email_service import EmailService
    return EmailService(get_data_gateway(), get_config())


def get_email_service() -> "EmailService":
    return _build_email_service()


@lru_cache()
def _build_notification_service() -> "NotificationService":
    from ..services.messaging.notification_service import NotificationService
    return NotificationService(get_data_gateway())


def get_notification_service() -> "NotificationService":
    return _build_notification_service()


@lru_cache()
def _build_user_service() -> "UserService":
    from ..services.user_service import UserService
    return UserService(get_data_gateway(), get_email_service())


def get_user_service() -> "UserService":
    return _build_user_service()


@lru_cache()
def _build_business_service() -> "BusinessService":
    from ..services.businesses.business_service import BusinessService
    return BusinessService(get_data_gateway())


def get_business_service() -> "BusinessService":
    return _build_business_service()


@lru_cache()
def _build_customer_service() -> "CustomerService":
    from ..services.businesses.customer_service import CustomerService
    return CustomerService(get_data_gateway())


def get_customer_service() -> "CustomerService":
    return _build_customer_service()


@lru_cache()
def _build_job_service() -> "JobService":
    from ..services.jobs.job_service import JobService
    return JobService(get_data_gateway(), get_customer_service(), get_notification_service())


def get_job_service() -> "JobService":
    return _build_job_service()


@lru_cache()
def _build_product_service() -> "ProductService":
    from ..services.catalog.product_service import ProductService
    return ProductService(get_data_gateway())


def get_product_service() -> "ProductService":
    return _build_product_service()


@lru_cache()
def _build_ar_model_service() -> "ARModelService":
    from ..services.catalog.ar_model_service import ARModelService
    return ARModelService(get_data_gateway(), get_config().conversion_step_delay_seconds)


def get_ar_model_service() -> "ARModelService":
    return _build_ar_model_service()


@lru_cache()
def _build_permission_service() -> "PermissionService":
    from ..services.auth.permission_service import PermissionService
    return PermissionService(get_data_gateway())


def get_permission_service() -> "PermissionService":
    return _build_permission_service()


@lru_cache()
def _build_dashboard_service() -> "DashboardService":
    from ..services.analytics.dashboard_service import DashboardService
    return DashboardService(get_data_gateway())


def get_dashboard_service() -> "DashboardService":
    return _build_dashboard_service()


def get_system_health_service() -> "SystemHealthService":
    from ..services.monitoring.system_health_service import SystemHealthService
    return SystemHealthService(get_data_gateway(), get_config())


# === Authentication Dependencies ===
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    auth_service: AuthenticationService = Depends(get_authentication_service),
) -> Dict[str, Any]:
    """Rehydrate the session behind the bearer token (user must still exist and be active)."""
    return await auth_service.resolve_session(credentials.credentials)


async def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Dict[str, Any]:
    try:
        return decode_token(credentials.credentials)
    except TokenDecodeError as e:
        raise AuthenticationError(f"Invalid token: {e}") from e


# === Permission Dependencies ===
def require_roles(*roles: Role) -> Callable:
    """Factory function to create role dependencies"""
    allowed = {getattr(r, "value", r) for r in roles}

    async def role_dependency(
        request: Request,
        current_user: Dict[str, Any] = Depends(get_current_user),
        audit_service: AuditLoggingService = Depends(get_audit_logging_service),
    ) -> Dict[str, Any]:
        if current_user.get("role") not in allowed:
            await audit_service.log_activity(
                current_user.get("id"),
                "access_denied",
                resource_type="endpoint",
                resource_id=request.url.path,
                request=request,
                details={"required_roles": sorted(allowed), "user_role": current_user.get("role")},
            )
            raise PermissionError(
                f"Insufficient permissions. Required: {', '.join(sorted(allowed))}",
                details={"user_role": current_user.get("role")},
            )
        return current_user

    return role_dependency


require_admin = require_roles(Role.ADMIN)
require_manager = require_roles(Role.ADMIN, Role.BUSINESS)


__all__ = [
    "get_app_config",
    "get_data_gateway",
    "get_error_handler",
    "get_current_user",
    "get_token_payload",
    "require_roles",
    "require_admin",
    "require_manager",
    "reset_dependency_caches",
]


def reset_dependency_caches() -> None:
    """Clear cached dependency instances (useful for testing)."""
    _build_data_gateway.cache_clear()
    _build_authentication_service.cache_clear()
    _build_audit_logging_service.cache_clear()
    _build_email_service.cache_clear()
    _build_notification_service.cache_clear()
    _build_user_service.cache_clear()
    _build_business_service.cache_clear()
    _build_customer_service.cache_clear()
    _build_job_service.cache_clear()
    _build_product_service.cache_clear()
    _build_ar_model_service.cache_clear()
    _build_permission_service.cache_clear()
    _build_dashboard_service.cache_clear()
