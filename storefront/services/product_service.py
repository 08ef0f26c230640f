"""
=============================================================================
STOREFRONT - PRODUCT CATALOG SERVICE
=============================================================================

Catalog listing, lookup and admin CRUD over the products JSON file.

Features:
    - Listing with category / text search / price range filters
    - Fixed set of sort keys; unknown keys leave the order untouched
    - Category list always computed over the whole catalog
    - Normalized category lookup ("Dish Care" == "dish-care")
    - Create / partial update / delete with whole-file persistence

Key Classes:
    ProductFilterParams: Dataclass for filter parameters
    ProductService: Main service class with all product operations

Storage:
    Every call reloads the file. Mutations run inside the storage writer
    lock and read strictly, so a corrupt file is reported instead of being
    overwritten. Listing reads leniently and degrades to an empty catalog.
=============================================================================
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from storefront.core.config import settings
from storefront.core.errors import NotFound
from storefront.core.validation import messages_for, validate
from storefront.schemas.product import (
    PriceBounds,
    Product,
    ProductCreate,
    ProductPath,
    ProductSort,
    ProductUpdate,
)
from storefront.services.storage_service import JsonArrayStorage
from storefront.utils.time_utils import utc_now_iso

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND = "Product not found"

PRODUCT_ID_MESSAGES = messages_for("id", "Product ID must be a number")

PRODUCT_CREATE_MESSAGES = {
    **messages_for("name", "Product name is required"),
    **messages_for("description", "Description is required"),
    **messages_for("category", "Category is required"),
    **messages_for("packaging", "Packaging is required"),
    **messages_for("price", "Price must be a positive number"),
    **messages_for("image", "Image must be a string"),
}

PRODUCT_UPDATE_MESSAGES = {
    **messages_for("name", "Product name cannot be empty"),
    **messages_for("description", "Description cannot be empty"),
    **messages_for("category", "Category cannot be empty"),
    **messages_for("packaging", "Packaging cannot be empty"),
    **messages_for("price", "Price must be a positive number"),
    **messages_for("image", "Image must be a string"),
}

PRICE_BOUNDS_MESSAGES = {
    **messages_for("minPrice", "minPrice must be a number"),
    **messages_for("maxPrice", "maxPrice must be a number"),
}

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_category(name: str) -> str:
    """Lowercase and collapse whitespace runs to ``-``."""
    return _WHITESPACE_RE.sub("-", name.strip().lower())


def parse_product_id(raw: Any) -> int:
    return validate(ProductPath, {"id": raw}, PRODUCT_ID_MESSAGES).id


def _price(record: Mapping[str, Any]) -> float:
    try:
        return float(record.get("price") or 0)
    except (TypeError, ValueError):
        return 0.0


def _name_key(record: Mapping[str, Any]) -> Tuple[str, str]:
    name = str(record.get("name") or "")
    return (name.casefold(), name)


_SORTERS: Dict[ProductSort, Tuple[Callable[[Mapping[str, Any]], Any], bool]] = {
    ProductSort.PRICE_ASC: (_price, False),
    ProductSort.PRICE_DESC: (_price, True),
    ProductSort.NAME_ASC: (_name_key, False),
    ProductSort.NAME_DESC: (_name_key, True),
}


@dataclass(frozen=True)
class ProductFilterParams:
    """Filter parameters for product listing."""
    category: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    @classmethod
    def from_query(
        cls,
        category: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[str] = None,
        max_price: Optional[str] = None,
    ) -> "ProductFilterParams":
        bounds = validate(
            PriceBounds, {"minPrice": min_price, "maxPrice": max_price}, PRICE_BOUNDS_MESSAGES
        )
        return cls(
            category=category or None,
            search=search or None,
            min_price=bounds.min_price,
            max_price=bounds.max_price,
        )


def next_product_id(records: List[Dict[str, Any]]) -> int:
    """Highest integer id plus one; hand-edited non-integer ids are skipped."""
    highest = 0
    for record in records:
        raw = record.get("id")
        if isinstance(raw, int) and not isinstance(raw, bool):
            highest = max(highest, raw)
        else:
            logger.warning("Ignoring product with non-integer id %r", raw)
    return highest + 1


def to_products(records: List[Dict[str, Any]]) -> List[Product]:
    products = []
    for record in records:
        try:
            products.append(Product.model_validate(record))
        except PydanticValidationError as exc:
            logger.warning("Skipping malformed product record %r: %s", record.get("id"), exc)
    return products


def distinct_categories(records: List[Dict[str, Any]]) -> List[str]:
    seen: Dict[str, None] = {}
    for record in records:
        category = record.get("category")
        if category is not None:
            seen.setdefault(category, None)
    return list(seen)


class ProductService:
    """Service for product catalog queries and admin mutations."""

    def __init__(self, storage: JsonArrayStorage, default_image: Optional[str] = None):
        self.storage = storage
        self.default_image = default_image or settings.DEFAULT_PRODUCT_IMAGE

    def apply_filters(
        self, records: List[Dict[str, Any]], params: ProductFilterParams
    ) -> List[Dict[str, Any]]:
        results = records
        if params.category:
            wanted = params.category.lower()
            results = [r for r in results if str(r.get("category", "")).lower() == wanted]
        if params.search:
            term = params.search.lower()
            results = [
                r
                for r in results
                if term in str(r.get("name", "")).lower()
                or term in str(r.get("description", "")).lower()
            ]
        if params.min_price is not None:
            results = [r for r in results if _price(r) >= params.min_price]
        if params.max_price is not None:
            results = [r for r in results if _price(r) <= params.max_price]
        return results

    def apply_sort(
        self, records: List[Dict[str, Any]], sort: Optional[str]
    ) -> List[Dict[str, Any]]:
        try:
            key, reverse = _SORTERS[ProductSort(sort)]
        except ValueError:
            return records
        # sorted() is stable, also with reverse=True
        return sorted(records, key=key, reverse=reverse)

    def list_products(
        self, params: ProductFilterParams, sort: Optional[str] = None
    ) -> Tuple[List[Product], List[str]]:
        records = self.storage.read()
        filtered = self.apply_sort(self.apply_filters(records, params), sort)
        return to_products(filtered), distinct_categories(records)

    def list_categories(self) -> List[str]:
        return distinct_categories(self.storage.read())

    def get_product(self, product_id: int) -> Product:
        for record in self.storage.read():
            if record.get("id") == product_id:
                return Product.model_validate(record)
        raise NotFound(PRODUCT_NOT_FOUND)

    def list_by_category(self, category: str) -> List[Product]:
        wanted = normalize_category(category)
        return to_products(
            [
                r
                for r in self.storage.read()
                if normalize_category(str(r.get("category", ""))) == wanted
            ]
        )

    def create_product(self, payload: Mapping[str, Any]) -> Product:
        fields = validate(ProductCreate, payload, PRODUCT_CREATE_MESSAGES)

        with self.storage.locked():
            records = self.storage.read(strict=True)
            record = {
                "id": next_product_id(records),
                "name": fields.name,
                "image": fields.image or self.default_image,
                "description": fields.description,
                "packaging": fields.packaging,
                "category": fields.category,
                "price": fields.price,
                "createdAt": utc_now_iso(),
            }
            records.append(record)
            self.storage.save(records)

        logger.info("Product created id=%s category=%s", record["id"], record["category"])
        return Product.model_validate(record)

    def _index_of(self, records: List[Dict[str, Any]], product_id: int) -> int:
        for index, record in enumerate(records):
            if record.get("id") == product_id:
                return index
        raise NotFound(PRODUCT_NOT_FOUND)

    def update_product(self, product_id: int, payload: Mapping[str, Any]) -> Product:
        fields = validate(ProductUpdate, payload, PRODUCT_UPDATE_MESSAGES).changes()

        with self.storage.locked():
            records = self.storage.read(strict=True)
            index = self._index_of(records, product_id)
            updated = dict(records[index])
            updated.update(fields)
            updated["id"] = records[index]["id"]
            updated["updatedAt"] = utc_now_iso()
            records[index] = updated
            self.storage.save(records)

        logger.info("Product updated id=%s fields=%s", product_id, sorted(fields))
        return Product.model_validate(updated)

    def delete_product(self, product_id: int) -> Product:
        with self.storage.locked():
            records = self.storage.read(strict=True)
            index = self._index_of(records, product_id)
            removed = records.pop(index)
            self.storage.save(records)

        logger.info("Product deleted id=%s", product_id)
        return Product.model_validate(removed)
