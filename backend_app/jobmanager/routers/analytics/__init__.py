"""
Analytics Router Module - dashboard statistics
"""
from fastapi import APIRouter

from .dashboard import router as dashboard_router

# No parent tag so included subrouters keep their own tags
analytics_router = APIRouter(prefix="/api")

analytics_router.include_router(dashboard_router, prefix="")

__all__ = ["analytics_router"]
