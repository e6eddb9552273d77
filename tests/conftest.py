"""
Pytest configuration and fixtures for Silver Admin tests.

Tests run against a throwaway SQLite file through aiosqlite; tables are
created and dropped around every test that asks for a database.
"""
import os
import tempfile
import uuid
from decimal import Decimal
from types import SimpleNamespace

import pytest

# Set test environment before importing app modules
_db_fd, _db_path = tempfile.mkstemp(prefix="silver_admin_test_", suffix=".db")
os.close(_db_fd)

os.environ["ENVIRONMENT"] = "development"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_path}"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-for-unit-tests-only-0123456789"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-for-unit-tests-only-9876543210"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["COOKIE_SECURE"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ORDER_TIMEZONE"] = "UTC"

from httpx import ASGITransport, AsyncClient  # noqa: E402

from silver_admin import models  # noqa: E402,F401
from silver_admin.core.database import AsyncSessionLocal, Base, engine  # noqa: E402
from silver_admin.core.permissions import AdminRole  # noqa: E402
from silver_admin.models import Category, Product, ProductVariant, User  # noqa: E402
from silver_admin.services.admin_service import AdminService  # noqa: E402

TEST_PASSWORD = "s3cure-Passw0rd"


def pytest_sessionfinish(session, exitstatus):
    if os.path.exists(_db_path):
        os.remove(_db_path)


@pytest.fixture
async def db_engine():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db(db_engine):
    """Session for arranging data and calling services directly."""
    async with AsyncSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_admin(db):
    """Factory for committed admin accounts."""

    async def _make(role=AdminRole.STAFF, email=None, name="Test Admin", password=TEST_PASSWORD, is_active=True):
        admin = await AdminService(db).register(
            name=name,
            email=email or f"admin-{uuid.uuid4().hex[:8]}@example.com",
            password=password,
            role=role,
        )
        admin.is_active = is_active
        await db.commit()
        return admin

    return _make


@pytest.fixture
async def catalog(db):
    """One customer, one product with two variants."""
    category = Category(name="Rings", slug="rings")
    db.add(category)
    await db.flush()

    product = Product(
        name="Sterling Band Ring",
        slug="sterling-band-ring",
        sku="RNG-001",
        category_id=category.id,
        purity="925",
        weight=Decimal("4.500"),
        base_price=Decimal("500.00"),
    )
    db.add(product)
    await db.flush()

    variant = ProductVariant(
        product_id=product.id,
        sku="RNG-001-S7",
        variant_name="Size 7",
        size="7",
        selling_price=Decimal("500.00"),
        image="https://cdn.example.com/rng-001-s7.jpg",
        low_stock_threshold=5,
    )
    other_variant = ProductVariant(
        product_id=product.id,
        sku="RNG-001-S8",
        variant_name="Size 8",
        size="8",
        selling_price=Decimal("520.00"),
    )
    customer = User(name="Asha Rao", email="asha@example.com", phone="9876543210")
    db.add_all([variant, other_variant, customer])
    await db.commit()

    return SimpleNamespace(
        category=category,
        product=product,
        variant=variant,
        other_variant=other_variant,
        customer=customer,
    )


@pytest.fixture
def address() -> dict:
    return {
        "name": "Asha Rao",
        "phone": "9876543210",
        "line1": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
    }


@pytest.fixture
async def client(db_engine):
    from silver_admin.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def login(client):
    """Log an admin in; the client keeps the auth cookies."""

    async def _login(admin, password=TEST_PASSWORD):
        resp = await client.post("/api/auth/login", json={"email": admin.email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _login
