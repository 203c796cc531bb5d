"""
Products Router - Product catalogue
Every signed-in user can browse active products; admins maintain the catalogue.
"""
from typing import Optional, Dict, Any
from fastapi import APIRouter, Depends, Query
import logging

from ...core.dependencies import (
    get_current_user,
    get_error_handler,
    get_product_service,
    require_admin,
)
from ...core.errors import ApplicationError, ErrorCode, ErrorHandler
from ...models.domain import ProductCreateRequest, ProductUpdateRequest
from ...services.catalog import ProductService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _handle_internal_error(
    error_handler: ErrorHandler,
    action: str,
    exc: Exception,
    *,
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    error_handler.raise_internal(action, exc, error_code=error_code, extra=details)


@router.get("")
async def list_products(
    category: str = Query(""),
    include_inactive: bool = Query(False),
    current_user: Dict[str, Any] = Depends(get_current_user),
    product_svc: ProductService = Depends(get_product_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        products = await product_svc.list_products(
            current_user, category=category, include_inactive=include_inactive
        )
        return {"status": 200, "count": len(products), "products": products}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "list products", exc)


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    product_svc: ProductService = Depends(get_product_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        product = await product_svc.get_product(current_user, product_id)
        return {"status": 200, "product": product}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "get product", exc, details={"product_id": product_id})


@router.post("", status_code=201)
async def create_product(
    payload: ProductCreateRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    product_svc: ProductService = Depends(get_product_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        product = await product_svc.create_product(current_user, payload.model_dump())
        return {"status": 201, "message": "Product created", "product": product}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "create product", exc)


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductUpdateRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    product_svc: ProductService = Depends(get_product_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        product = await product_svc.update_product(
            current_user, product_id, payload.model_dump(exclude_unset=True)
        )
        return {"status": 200, "message": "Product updated", "product": product}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "update product", exc, details={"product_id": product_id})


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    current_user: Dict[str, Any] = Depends(require_admin),
    product_svc: ProductService = Depends(get_product_service),
    error_handler: ErrorHandler = Depends(get_error_handler),
) -> Dict[str, Any]:
    try:
        await product_svc.delete_product(current_user, product_id)
        return {"status": 200, "message": "Product deleted", "product_id": product_id}
    except ApplicationError:
        raise
    except Exception as exc:
        _handle_internal_error(error_handler, "delete product", exc, details={"product_id": product_id})
