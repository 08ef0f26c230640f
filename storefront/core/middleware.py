import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("storefront.access")


class RequestLogMiddleware(BaseHTTPMiddleware):
    """
    Request ID tracing plus one access-log line per request.

    If the client sends X-Request-ID, it is preserved; otherwise a new UUID
    is generated. The ID is stored in ``request.state.request_id`` and echoed
    in the response headers together with ``X-Process-Time``.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.6f}"

        logger.info(
            "REQUEST | id=%s | method=%s | path=%s | status=%s | duration=%.1fms",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            process_time * 1000,
        )
        return response
