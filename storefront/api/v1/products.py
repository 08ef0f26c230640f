"""
=============================================================================
STOREFRONT API - PRODUCT CATALOG ENDPOINTS
=============================================================================

Endpoints:
    GET /products - List products with filters and sorting
    GET /products/categories - Distinct category names
    GET /products/{id} - Single product
    GET /products/category/{category} - Products in a category (normalized)
    POST /products - Create product (admin)
    PUT /products/{id} - Partial update (admin)
    DELETE /products/{id} - Delete product (admin)

Authentication:
    None. Admin endpoints are open; put them behind the reverse proxy if
    the deployment needs that.
=============================================================================
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from storefront.api.deps import get_product_service, read_payload
from storefront.schemas.envelope import (
    ERROR_RESPONSES,
    CategoryEnvelope,
    Envelope,
    ProductListEnvelope,
)
from storefront.schemas.product import Product
from storefront.services.product_service import (
    ProductFilterParams,
    ProductService,
    parse_product_id,
)

router = APIRouter(responses=ERROR_RESPONSES)


@router.get(
    "",
    response_model=ProductListEnvelope[List[Product]],
    response_model_exclude_unset=True,
    summary="List products",
)
def list_products(
    category: Optional[str] = Query(None, description="Exact category, case-insensitive"),
    search: Optional[str] = Query(None, description="Substring of name or description"),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    sort: Optional[str] = Query(None, description="price_asc | price_desc | name_asc | name_desc"),
    service: ProductService = Depends(get_product_service),
):
    """List products; ``categories`` always covers the whole catalog."""
    params = ProductFilterParams.from_query(category, search, min_price, max_price)
    products, categories = service.list_products(params, sort)
    return ProductListEnvelope[List[Product]](
        success=True, count=len(products), categories=categories, data=products
    )


@router.get(
    "/categories",
    response_model=Envelope[List[str]],
    response_model_exclude_unset=True,
    summary="List product categories",
)
def list_categories(service: ProductService = Depends(get_product_service)):
    categories = service.list_categories()
    return Envelope[List[str]](success=True, count=len(categories), data=categories)


@router.get(
    "/category/{category}",
    response_model=CategoryEnvelope[List[Product]],
    response_model_exclude_unset=True,
    summary="List products in a category",
)
def list_products_by_category(
    category: str, service: ProductService = Depends(get_product_service)
):
    """Match ignoring case and treating whitespace and hyphens alike."""
    products = service.list_by_category(category)
    return CategoryEnvelope[List[Product]](
        success=True, count=len(products), category=category, data=products
    )


@router.get(
    "/{product_id}",
    response_model=Envelope[Product],
    response_model_exclude_unset=True,
    summary="Get product",
)
def get_product(product_id: str, service: ProductService = Depends(get_product_service)):
    product = service.get_product(parse_product_id(product_id))
    return Envelope[Product](success=True, data=product)


@router.post(
    "",
    response_model=Envelope[Product],
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
)
def create_product(
    payload: Dict[str, Any] = Depends(read_payload),
    service: ProductService = Depends(get_product_service),
):
    product = service.create_product(payload)
    return Envelope[Product](
        success=True, message="Product created successfully", data=product
    )


@router.put(
    "/{product_id}",
    response_model=Envelope[Product],
    response_model_exclude_unset=True,
    summary="Update product",
)
def update_product(
    product_id: str,
    payload: Dict[str, Any] = Depends(read_payload),
    service: ProductService = Depends(get_product_service),
):
    """Partial update; only name, description, packaging, category, price and image change."""
    product = service.update_product(parse_product_id(product_id), payload)
    return Envelope[Product](
        success=True, message="Product updated successfully", data=product
    )


@router.delete(
    "/{product_id}",
    response_model=Envelope[Product],
    response_model_exclude_unset=True,
    summary="Delete product",
)
def delete_product(product_id: str, service: ProductService = Depends(get_product_service)):
    product = service.delete_product(parse_product_id(product_id))
    return Envelope[Product](
        success=True, message="Product deleted successfully", data=product
    )
