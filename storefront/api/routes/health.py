"""
Health check endpoints.

Provides:
- ``GET /api/health`` - liveness, version and environment
- ``GET /api/health/ready`` - readiness: both data stores usable
"""
import time
from typing import Dict, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storefront.api.deps import get_contact_service, get_product_service
from storefront.core.config import settings
from storefront.core.errors import StorageUnavailable
from storefront.services.contact_service import ContactService
from storefront.services.product_service import ProductService
from storefront.services.storage_service import JsonArrayStorage
from storefront.utils.time_utils import utc_now_iso

router = APIRouter(tags=["health"])


class StoreHealth(BaseModel):
    """Health status of one backing file."""

    status: Literal["healthy", "degraded", "unhealthy"]
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class ReadinessResponse(BaseModel):
    success: bool
    ready: bool
    stores: Dict[str, StoreHealth]


def check_store(storage: JsonArrayStorage) -> StoreHealth:
    """Check the store's directory is writable and its file parses."""
    start = time.perf_counter()
    if not storage.is_writable():
        return StoreHealth(status="unhealthy", message=f"{storage.label} directory not writable")
    try:
        storage.read(strict=True)
    except StorageUnavailable as exc:
        return StoreHealth(status="degraded", message=exc.message)
    latency = (time.perf_counter() - start) * 1000
    return StoreHealth(status="healthy", latency_ms=round(latency, 2))


@router.get("", summary="Health check")
async def health_check():
    """Liveness plus version and environment metadata."""
    return {
        "success": True,
        "message": f"{settings.PROJECT_NAME} API is running",
        "timestamp": utc_now_iso(),
        "environment": settings.ENVIRONMENT,
        "version": settings.VERSION,
    }


@router.get("/ready", response_model=ReadinessResponse, summary="Readiness check")
def readiness_check(
    products: ProductService = Depends(get_product_service),
    contact: ContactService = Depends(get_contact_service),
):
    stores = {
        "products": check_store(products.storage),
        "submissions": check_store(contact.storage),
    }
    ready = all(s.status != "unhealthy" for s in stores.values())
    body = ReadinessResponse(success=ready, ready=ready, stores=stores)
    return JSONResponse(content=body.model_dump(), status_code=200 if ready else 503)
