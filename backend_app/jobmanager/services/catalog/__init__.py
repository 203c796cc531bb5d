"""
Catalogue Services

- product_service: product catalogue
- ar_model_service: AR model library and simulated image-to-3D conversion
"""

from .ar_model_service import ARModelService, CONVERSION_STAGES
from .product_service import ProductService

__all__ = [
    "ARModelService",
    "CONVERSION_STAGES",
    "ProductService",
]
