"""
Storefront Services Module.

Services:
    - ProductService: product catalog queries and admin CRUD
    - ContactService: contact form submissions and their status lifecycle
    - JsonArrayStorage: whole-file JSON array persistence shared by both
"""

from .contact_service import ContactService
from .product_service import ProductFilterParams, ProductService
from .storage_service import JsonArrayStorage

__all__ = [
    "ContactService",
    "JsonArrayStorage",
    "ProductFilterParams",
    "ProductService",
]
