"""
Auth Router Module - Central import and routing registration for auth domain
"""
from fastapi import APIRouter

from .authentication import router as authentication_router
from .permissions import router as module_permissions_router
from .user_management import router as user_management_router

# Create main auth router
auth_router = APIRouter(prefix="/api/auth")

auth_router.include_router(authentication_router, prefix="")
auth_router.include_router(user_management_router, prefix="")

__all__ = ["auth_router", "module_permissions_router"]
