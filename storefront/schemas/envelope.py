"""
Uniform response envelope for the storefront API.

Every endpoint answers ``{"success": bool, ...}``. Successful responses
carry ``data`` plus optional ``message``/``count``; failures carry
``error`` or ``errors`` (see ``storefront.core.errors``). Endpoints are
registered with ``response_model_exclude_unset=True`` so keys an endpoint
did not set are left out of the body.
"""
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class FieldErrorItem(BaseModel):
    field: str
    message: str


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    count: Optional[int] = None
    data: Optional[T] = None


class ProductListEnvelope(Envelope[T], Generic[T]):
    categories: List[str] = Field(default_factory=list)


class CategoryEnvelope(Envelope[T], Generic[T]):
    category: str


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: Optional[str] = None
    errors: Optional[List[FieldErrorItem]] = None
    details: Optional[Any] = None


ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorEnvelope, "description": "Validation error or malformed body"},
    404: {"model": ErrorEnvelope, "description": "Not Found"},
    413: {"model": ErrorEnvelope, "description": "Request body too large"},
    429: {"model": ErrorEnvelope, "description": "Rate Limit Exceeded"},
    500: {"model": ErrorEnvelope, "description": "Storage unavailable"},
}
