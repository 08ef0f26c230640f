import json
from typing import Any, Dict, List

from fastapi import Request
from starlette.types import Message, Receive

from storefront.core.config import settings
from storefront.core.errors import MalformedRequestBody, PayloadTooLarge
from storefront.services.contact_service import ContactService
from storefront.services.product_service import ProductService
from storefront.services.storage_service import JsonArrayStorage

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def get_product_service() -> ProductService:
    """
    Product service bound to the configured products file.

    Usage:
        @router.get("/products")
        def list_products(service: ProductService = Depends(get_product_service)):
            ...
    """
    storage = JsonArrayStorage(
        settings.PRODUCTS_FILE,
        label="products",
        serialize_writes=settings.SERIALIZE_WRITES,
    )
    return ProductService(storage, default_image=settings.DEFAULT_PRODUCT_IMAGE)


def get_contact_service() -> ContactService:
    """Contact service; its storage creates the data directory on demand."""
    storage = JsonArrayStorage(
        settings.SUBMISSIONS_FILE,
        label="contact submissions",
        create_parent=True,
        serialize_writes=settings.SERIALIZE_WRITES,
    )
    return ContactService(storage)


async def read_limited_body(request: Request, limit: int) -> bytes:
    """Read the body, stopping as soon as it exceeds ``limit`` bytes."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise PayloadTooLarge()

    chunks: List[bytes] = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise PayloadTooLarge()
        chunks.append(chunk)
    return b"".join(chunks)


def _replay(body: bytes) -> Receive:
    async def receive() -> Message:
        return {"type": "http.request", "body": body, "more_body": False}

    return receive


async def read_payload(request: Request) -> Dict[str, Any]:
    """Request body as a dict, from JSON or a urlencoded form."""
    body = await read_limited_body(request, settings.MAX_BODY_BYTES)
    if not body.strip():
        return {}

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPE):
        form = await Request(request.scope, _replay(body)).form()
        return {key: value for key, value in form.items()}

    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise MalformedRequestBody() from exc
    if not isinstance(payload, dict):
        raise MalformedRequestBody("Request body must be a JSON object")
    return payload
