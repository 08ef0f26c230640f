import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from storefront.core.config import settings
from storefront.core.rate_limiter import reset_rate_limiter_state
from storefront.main import app
from storefront.services.contact_service import ContactService
from storefront.services.product_service import ProductService
from storefront.services.storage_service import JsonArrayStorage

# -----------------------------------------------------------------------------
# Sample data
# -----------------------------------------------------------------------------

SEED_PRODUCTS: List[Dict[str, Any]] = [
    {
        "id": 1,
        "name": "Dish Wash Liquid",
        "image": "Images/dish.png",
        "description": "Lemon dishwashing liquid",
        "packaging": "500ml, 1L",
        "category": "Dish Care",
        "price": 4.5,
    },
    {
        "id": 2,
        "name": "Multi-Surface Cleaner",
        "image": "Images/surface.png",
        "description": "Streak-free cleaner for glass",
        "packaging": "750ml",
        "category": "Surface Care",
        "price": 3.75,
    },
    {
        "id": 3,
        "name": "laundry Powder",
        "image": "Images/powder.png",
        "description": "Low-foam powder",
        "packaging": "1kg, 3kg",
        "category": "Laundry",
        "price": 8.9,
    },
    {
        "id": 4,
        "name": "Fabric Softener",
        "image": "Images/softener.png",
        "description": "Spring fragrance",
        "packaging": "1L",
        "category": "Laundry",
        "price": 4.5,
    },
]

VALID_CONTACT: Dict[str, Any] = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "email": "Ada@Example.com",
    "phone": "+1 555 123 4567",
    "subject": "products",
    "message": "I would like a quote for 100 units.",
}


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=4), encoding="utf-8")


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


# -----------------------------------------------------------------------------
# Settings / state isolation
# -----------------------------------------------------------------------------


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def products_file(data_dir: Path) -> Path:
    path = data_dir / "products.json"
    write_json(path, SEED_PRODUCTS)
    return path


@pytest.fixture
def submissions_file(data_dir: Path) -> Path:
    return data_dir / "contact-submissions.json"


@pytest.fixture
def frontend_dir(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    (root / "css").mkdir(parents=True)
    (root / "index.html").write_text("<html>home</html>", encoding="utf-8")
    (root / "css" / "site.css").write_text("body { margin: 0; }", encoding="utf-8")
    (tmp_path / "secret.txt").write_text("do not serve", encoding="utf-8")
    return root


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, products_file, submissions_file, frontend_dir):
    monkeypatch.setattr(settings, "PRODUCTS_FILE", str(products_file))
    monkeypatch.setattr(settings, "SUBMISSIONS_FILE", str(submissions_file))
    monkeypatch.setattr(settings, "FRONTEND_DIR", str(frontend_dir))
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(settings, "DEBUG", False)
    reset_rate_limiter_state()
    yield
    reset_rate_limiter_state()


# -----------------------------------------------------------------------------
# Service fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def product_storage(products_file: Path) -> JsonArrayStorage:
    return JsonArrayStorage(products_file, label="products")


@pytest.fixture
def product_service(product_storage: JsonArrayStorage) -> ProductService:
    return ProductService(product_storage, default_image="Images/placeholder.png")


@pytest.fixture
def contact_storage(submissions_file: Path) -> JsonArrayStorage:
    return JsonArrayStorage(submissions_file, label="contact submissions", create_parent=True)


@pytest.fixture
def contact_service(contact_storage: JsonArrayStorage) -> ContactService:
    return ContactService(contact_storage)


# -----------------------------------------------------------------------------
# HTTP client
# -----------------------------------------------------------------------------


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def unsafe_client():
    """Client that turns unhandled server errors into 500 responses."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def seed_products() -> List[Dict[str, Any]]:
    return [dict(p) for p in SEED_PRODUCTS]


@pytest.fixture
def valid_contact() -> Dict[str, Any]:
    return dict(VALID_CONTACT)


@pytest.fixture
def load_json():
    return read_json


@pytest.fixture
def dump_json():
    return write_json
