"""
Tenant Services

- business_service: business (tenant) records
- customer_service: customers of a business
"""

from .business_service import BusinessService
from .customer_service import CustomerService

__all__ = [
    "BusinessService",
    "CustomerService",
]
