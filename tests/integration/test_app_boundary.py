"""Cross-cutting behavior: health, headers, CORS, error envelope, rate limit, static frontend."""
import pytest

from storefront.api.routes.frontend import resolve_frontend_file
from storefront.core.config import settings
from storefront.services.product_service import ProductService


# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Storefront API is running"
    assert body["version"] == settings.VERSION
    assert body["environment"] == "development"
    assert body["timestamp"].endswith("Z")


def test_readiness(client):
    response = client.get("/api/health/ready")

    assert response.status_code == 200
    body = response.json()
    assert body["ready"] is True
    assert body["stores"]["products"]["status"] == "healthy"
    assert body["stores"]["submissions"]["status"] == "healthy"


def test_readiness_fails_without_products_directory(client, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "PRODUCTS_FILE", str(tmp_path / "gone" / "products.json"))

    response = client.get("/api/health/ready")

    assert response.status_code == 503
    assert response.json()["stores"]["products"]["status"] == "unhealthy"


def test_readiness_reports_corrupt_file_as_degraded(client, products_file):
    products_file.write_text("[{", encoding="utf-8")

    response = client.get("/api/health/ready")

    assert response.status_code == 200
    assert response.json()["stores"]["products"]["status"] == "degraded"


def test_openapi_schema_is_served(client):
    response = client.get("/api/openapi.json")

    assert response.status_code == 200
    assert "/api/products/{product_id}" in response.json()["paths"]


# -----------------------------------------------------------------------------
# Headers and CORS
# -----------------------------------------------------------------------------


def test_security_headers(client):
    response = client.get("/api/products")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert response.headers["Referrer-Policy"] == "no-referrer"
    assert "Strict-Transport-Security" not in response.headers


def test_security_headers_on_static_files(client):
    assert client.get("/").headers["X-Content-Type-Options"] == "nosniff"


def test_request_id_is_echoed(client):
    response = client.get("/api/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert "X-Process-Time" in response.headers


def test_cors_preflight_allowed_origin(client):
    response = client.options(
        "/api/products",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "POST" in response.headers["access-control-allow-methods"]


def test_cors_unknown_origin_gets_no_grant(client):
    response = client.get("/api/products", headers={"Origin": "https://evil.example.com"})

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


# -----------------------------------------------------------------------------
# Error envelope
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", "/api/nope"),
        ("POST", "/api/orders"),
        ("DELETE", "/api/products"),
        ("PATCH", "/api/products/1"),
    ],
)
def test_unknown_api_route(client, method, path):
    response = client.request(method, path)

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "API endpoint not found"}


def test_malformed_json(client):
    response = client.post(
        "/api/products", content="{bad json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid JSON in request body"}


def test_json_body_must_be_object(client):
    response = client.post("/api/contact", json=["not", "an", "object"])

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_body_too_large(client):
    payload = {"message": "x" * (settings.MAX_BODY_BYTES + 1)}

    response = client.post("/api/contact", json=payload)

    assert response.status_code == 413
    assert response.json() == {"success": False, "error": "Request body too large"}


def test_chunked_body_too_large(client, submissions_file):
    def chunks():
        for _ in range(8):
            yield b"x" * 4096

    response = client.post(
        "/api/contact", content=chunks(), headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 413
    assert not submissions_file.exists()


def test_storage_failure_details_only_in_development(client, monkeypatch, products_file):
    products_file.write_text("{corrupt", encoding="utf-8")
    new_product = {
        "name": "Glass Cleaner",
        "description": "Ammonia-free",
        "packaging": "500ml",
        "category": "Surface Care",
        "price": 1,
    }

    dev = client.post("/api/products", json=new_product)
    assert dev.status_code == 500
    assert dev.json()["details"]["path"] == str(products_file)

    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    prod = client.post("/api/products", json=new_product)
    assert prod.status_code == 500
    assert prod.json() == {"success": False, "error": "Internal Server Error"}
    assert products_file.read_text(encoding="utf-8") == "{corrupt"


def test_unhandled_error_is_generic_in_production(unsafe_client, monkeypatch):
    def _boom(self):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(ProductService, "list_categories", _boom)
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")

    response = unsafe_client.get("/api/products/categories")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Internal Server Error"
    assert "secret internals" not in response.text


def test_unhandled_error_includes_details_in_development(unsafe_client, monkeypatch):
    def _boom(self):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(ProductService, "list_categories", _boom)

    body = unsafe_client.get("/api/products/categories").json()

    assert body["error_type"] == "RuntimeError"
    assert body["message"] == "secret internals"


def test_debug_flag_exposes_details_in_production(unsafe_client, monkeypatch):
    def _boom(self):
        raise RuntimeError("secret internals")

    monkeypatch.setattr(ProductService, "list_categories", _boom)
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "DEBUG", True)

    body = unsafe_client.get("/api/products/categories").json()

    assert body["error_type"] == "RuntimeError"
    assert body["message"] == "secret internals"


# -----------------------------------------------------------------------------
# Rate limiting
# -----------------------------------------------------------------------------


def test_rate_limit_headers(client):
    response = client.get("/api/health")

    assert response.headers["RateLimit-Limit"] == str(settings.RATE_LIMIT_MAX)
    assert int(response.headers["RateLimit-Remaining"]) == settings.RATE_LIMIT_MAX - 1


def test_rate_limit_exceeded(client, monkeypatch):
    monkeypatch.setattr(settings, "RATE_LIMIT_MAX", 3)

    statuses = [client.get("/api/products").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]
    blocked = client.get("/api/health")
    assert blocked.json() == {
        "success": False,
        "error": "Too many requests, please try again later.",
    }
    assert int(blocked.headers["Retry-After"]) > 0
    assert blocked.headers["X-Frame-Options"] == "SAMEORIGIN"

    # Static files are outside the limited surface
    assert client.get("/").status_code == 200


# -----------------------------------------------------------------------------
# Static frontend
# -----------------------------------------------------------------------------


def test_serves_index_and_assets(client):
    index = client.get("/")
    css = client.get("/css/site.css")

    assert index.status_code == 200
    assert "home" in index.text
    assert css.status_code == 200
    assert "margin" in css.text


def test_client_routes_fall_back_to_index(client):
    response = client.get("/products/dish-care")

    assert response.status_code == 200
    assert "home" in response.text


def test_missing_frontend_is_not_found(client, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "FRONTEND_DIR", str(tmp_path / "empty"))

    response = client.get("/about")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found"}


def test_frontend_paths_cannot_escape_root(frontend_dir):
    assert resolve_frontend_file("../secret.txt") is None
    assert resolve_frontend_file("css/../../secret.txt") is None
    assert resolve_frontend_file("css/site.css") == (frontend_dir / "css" / "site.css").resolve()
