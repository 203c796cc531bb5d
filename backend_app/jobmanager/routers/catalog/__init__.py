"""
Catalog Router Module - products and AR models
"""
from fastapi import APIRouter

from .models import router as models_router
from .products import router as products_router

catalog_router = APIRouter(prefix="/api")

catalog_router.include_router(products_router, prefix="")
catalog_router.include_router(models_router, prefix="")

__all__ = ["catalog_router"]
