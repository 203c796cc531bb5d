"""Authentication services.

- authentication_service: login, session rehydration, logout
- permission_service: feature module grants (AR camera)
- demo_data: default accounts seeded into an empty deployment
"""

from .authentication_service import (
    AuthenticationService,
    extract_ip_address,
    extract_user_agent,
    hash_password,
    verify_password,
)
from .permission_service import PermissionService

__all__ = [
    "AuthenticationService",
    "PermissionService",
    "extract_ip_address",
    "extract_user_agent",
    "hash_password",
    "verify_password",
]
