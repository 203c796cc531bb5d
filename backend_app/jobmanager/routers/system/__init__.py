"""
System Router Module - Central import and routing registration for system domain
"""
from fastapi import APIRouter
from .admin import router as admin_router
from .health import router as health_router

# Create main system router
system_router = APIRouter(prefix="/api/system")

# Do NOT re-apply tags here so subrouters keep their own tags
system_router.include_router(health_router, prefix="")
system_router.include_router(admin_router, prefix="")

__all__ = [
    "system_router",
]
