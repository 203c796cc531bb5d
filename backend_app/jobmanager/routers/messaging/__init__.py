"""
Messaging Router Module - notifications and the email outbox
"""
from fastapi import APIRouter

from .emails import router as emails_router
from .notifications import router as notifications_router

messaging_router = APIRouter(prefix="/api")

messaging_router.include_router(notifications_router, prefix="")
messaging_router.include_router(emails_router, prefix="")

__all__ = ["messaging_router"]
