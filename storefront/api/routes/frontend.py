"""
Static frontend delivery and API fallthrough.

Unknown paths under the API prefix answer the 404 envelope for every verb.
Any other GET serves the matching file from ``FRONTEND_DIR`` or falls back
to ``index.html`` so client-side routes resolve.
"""
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import FileResponse

from storefront.core.config import settings
from storefront.core.errors import API_NOT_FOUND_MESSAGE

api_fallback_router = APIRouter()
router = APIRouter()

INDEX_FILE = "index.html"
API_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@api_fallback_router.api_route("/{path:path}", methods=API_METHODS, include_in_schema=False)
async def api_not_found(path: str):
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=API_NOT_FOUND_MESSAGE)


def resolve_frontend_file(path: str) -> Optional[Path]:
    """Map a URL path onto a file inside the frontend root, or None."""
    root = Path(settings.FRONTEND_DIR).resolve()
    candidate = (root / path.lstrip("/")).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    if candidate.is_dir():
        candidate = candidate / INDEX_FILE
    return candidate if candidate.is_file() else None


@router.get("/{path:path}", include_in_schema=False)
async def serve_frontend(path: str):
    target = resolve_frontend_file(path) or resolve_frontend_file(INDEX_FILE)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    return FileResponse(target)
