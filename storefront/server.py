"""Command-line entry point for the storefront API.

Host and port are read from ``HOST`` and ``PORT`` (see
``storefront.core.config``). Uvicorn handles SIGINT/SIGTERM and drains
in-flight requests before exiting.

Usage:
    storefront-api
    # or
    uvicorn storefront.main:app --reload
"""
import uvicorn

from storefront.core.config import settings


def main() -> None:
    """Serve ``storefront.main:app`` with uvicorn."""
    uvicorn.run(
        "storefront.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
