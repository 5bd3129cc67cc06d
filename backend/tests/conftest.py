import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from storefront import schemas
from storefront.auth import ensure_admin
from storefront.database import Base, make_engine, make_session_factory
from storefront.main import create_app
from storefront.payments import MockPaymentGateway
from storefront.storage import DatabaseStorage, MemStorage

ADMIN_PASSWORD = "admin-secret"
PASSWORD = "s3cret-pass"


# ============================================================================
# STORAGE
# ============================================================================

@pytest.fixture
def db_storage():
    # One shared in-memory SQLite connection for the whole test
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield DatabaseStorage(make_session_factory(engine))
    engine.dispose()


@pytest.fixture(params=["memory", "database"])
def storage(request):
    """Runs the test once per backend; both must behave identically."""
    if request.param == "memory":
        return MemStorage()
    return request.getfixturevalue("db_storage")


def make_user(storage, username, role=schemas.Role.CUSTOMER):
    return storage.create_user(schemas.UserCreate(username=username, password="x", role=role))


def make_product(storage, supplier_id, **overrides):
    values = {"name": "Linen Shirt", "price": 25.0, "stock": 10, "supplier_id": supplier_id}
    values.update(overrides)
    return storage.create_product(schemas.ProductCreate(**values))


# ============================================================================
# HTTP
# ============================================================================

@pytest.fixture
def mem_storage():
    return MemStorage()


@pytest.fixture
def payments():
    return MockPaymentGateway(checkout_url="https://pay.test/checkout", currency="GHS")


@pytest.fixture
def app(mem_storage, payments, tmp_path):
    ensure_admin(mem_storage, "admin", ADMIN_PASSWORD)
    return create_app(storage=mem_storage, payments=payments, upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def client(app):
    return TestClient(app)


def register(app, username, role="customer"):
    """A TestClient logged in as a freshly registered user."""
    client = TestClient(app)
    response = client.post("/api/register", json={
        "username": username,
        "password": PASSWORD,
        "email": f"{username}@example.com",
        "fullName": username.title(),
        "role": role,
    })
    assert response.status_code == 201, response.text
    client.user = response.json()
    return client


@pytest.fixture
def admin_client(app):
    client = TestClient(app)
    response = client.post("/api/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    client.user = response.json()
    return client


@pytest.fixture
def supplier_client(app):
    return register(app, "supplier_one", role="supplier")


@pytest.fixture
def customer_client(app):
    return register(app, "customer_one")


def create_product(client, **overrides):
    payload = {
        "name": "Kente Scarf",
        "description": "Hand woven",
        "price": 40.0,
        "category": "accessories",
        "stock": 10,
        "imageUrls": ["/uploads/a.png", "/uploads/b.png"],
        "availableSizes": ["S", "M"],
        "availableColors": ["gold"],
    }
    payload.update(overrides)
    response = client.post("/api/products", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
