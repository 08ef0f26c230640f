"""
=============================================================================
STOREFRONT - ERROR HANDLING MODULE
=============================================================================
Error taxonomy and global exception handlers producing the uniform
``{"success": false, ...}`` envelope.

Features:
- Domain errors (validation, not found, storage, malformed body) mapped
  to status codes in one place
- Framework errors (request validation, HTTP exceptions, unmatched API
  routes) translated to the same envelope
- Logs full stack trace server-side
- Internals only exposed in development or with DEBUG on

Usage:
    # In main.py
    from storefront.core.errors import register_exception_handlers
    register_exception_handlers(app)
=============================================================================
"""

import logging
import traceback
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.core.config import settings

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal Server Error"
API_NOT_FOUND_MESSAGE = "API endpoint not found"


@dataclass(frozen=True)
class FieldError:
    """A single failing field reported by the validation layer."""

    field: str
    message: str


class ApiError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = GENERIC_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation Error"

    def __init__(self, errors: Sequence[FieldError]):
        self.errors: List[FieldError] = list(errors)
        super().__init__(self.message, details=[asdict(e) for e in self.errors])


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class MalformedRequestBody(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid JSON in request body"


class PayloadTooLarge(ApiError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    message = "Request body too large"


class StorageUnavailable(ApiError):
    """Backing file could not be read or written."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Storage unavailable"


def error_body(message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": message}
    body.update(extra)
    return body


def validation_body(errors: Sequence[FieldError]) -> Dict[str, Any]:
    return {"success": False, "errors": [asdict(e) for e in errors]}


def _log_error(request: Request, exc: Exception, level: int = logging.ERROR) -> None:
    logger.log(
        level,
        "Error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=level >= logging.ERROR,
    )


def _field_from_loc(loc: Sequence[Any]) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) if parts else "body"


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        _log_error(request, exc, level=logging.INFO)
        return JSONResponse(
            status_code=exc.status_code, content=validation_body(exc.errors)
        )

    @app.exception_handler(StorageUnavailable)
    async def storage_error_handler(request: Request, exc: StorageUnavailable):
        _log_error(request, exc)
        if settings.expose_errors:
            content = error_body(exc.message, details=exc.details)
        else:
            content = error_body(GENERIC_ERROR_MESSAGE)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        _log_error(request, exc, level=logging.INFO)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if any(err.get("type") == "json_invalid" for err in errors):
            malformed = MalformedRequestBody()
            _log_error(request, malformed, level=logging.INFO)
            return JSONResponse(
                status_code=malformed.status_code, content=error_body(malformed.message)
            )

        field_errors = [
            FieldError(field=_field_from_loc(err.get("loc", ())), message=err.get("msg", "Invalid value"))
            for err in errors
        ]
        _log_error(request, exc, level=logging.INFO)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content=validation_body(field_errors)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else GENERIC_ERROR_MESSAGE
        if exc.status_code == status.HTTP_404_NOT_FOUND and request.url.path.startswith(
            settings.API_PREFIX + "/"
        ):
            message = API_NOT_FOUND_MESSAGE
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions.

        - Logs the full traceback for debugging
        - Returns a generic error message to prevent info leakage
        - In development or with DEBUG on, includes more details
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}:\n"
            f"{traceback.format_exc()}"
        )

        if settings.expose_errors:
            return JSONResponse(
                status_code=500,
                content=error_body(
                    GENERIC_ERROR_MESSAGE,
                    error_type=type(exc).__name__,
                    message=str(exc),
                    stack=traceback.format_exc(),
                ),
            )
        return JSONResponse(
            status_code=500,
            content=error_body(
                GENERIC_ERROR_MESSAGE,
                message="An unexpected error occurred. Please try again later.",
            ),
        )
