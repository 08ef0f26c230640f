import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.routes import frontend, health
from storefront.api.v1 import contact, products
from storefront.core.config import settings
from storefront.core.errors import register_exception_handlers
from storefront.core.logging import setup_logging
from storefront.core.middleware import RequestLogMiddleware
from storefront.core.rate_limiter import RateLimitMiddleware
from storefront.core.security_headers import SecurityHeadersMiddleware

# Setup logging
setup_logging()
logger = logging.getLogger("storefront")


# =============================================================================
# OpenAPI Tags Metadata
# =============================================================================
tags_metadata = [
    {
        "name": "products",
        "description": "**Product catalog** - Listing with category, text and price filters; admin create/update/delete.",
    },
    {
        "name": "contact",
        "description": "**Contact form** - Public submission and admin review of stored submissions.",
    },
    {
        "name": "health",
        "description": "**Health** - Liveness and storage readiness.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("Starting %s v%s", settings.PROJECT_NAME, settings.VERSION)
    logger.info("Environment: %s", settings.ENVIRONMENT)
    logger.info("Debug mode: %s", settings.DEBUG)
    logger.info("Products file: %s", settings.PRODUCTS_FILE)
    logger.info("Submissions file: %s", settings.SUBMISSIONS_FILE)

    yield

    # Shutdown
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="REST API for the storefront website: product catalog and contact form.",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=None,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
)

# Rate limiting on /api/*
app.add_middleware(RateLimitMiddleware)

# Request ID + access log
app.add_middleware(RequestLogMiddleware)

# Security headers
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware (outermost, so error and 429 responses carry CORS headers too)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
    expose_headers=["X-Request-ID", "RateLimit-Limit", "RateLimit-Remaining", "RateLimit-Reset"],
)

# Register global exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(
    health.router, prefix=f"{settings.API_PREFIX}/health", tags=["health"]
)

app.include_router(
    products.router, prefix=f"{settings.API_PREFIX}/products", tags=["products"]
)

app.include_router(
    contact.router, prefix=f"{settings.API_PREFIX}/contact", tags=["contact"]
)

# Unknown API paths, then the static frontend; both must stay last
app.include_router(frontend.api_fallback_router, prefix=settings.API_PREFIX)
app.include_router(frontend.router)
