"""Shared test fixtures for all tests."""
import os
import tempfile

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "pharmastock-test-logs"))
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from pharmastock.core.database import Base, get_db
from pharmastock.models import (
    ProductCategory, ProductFormulation, Supplier, Product, PackagingUnit, ProductBatch
)
from pharmastock.main import app
from pharmastock.services.packaging_units import seed_packaging_templates


@pytest.fixture(scope="function")
def test_db():
    """Create a fresh in-memory SQLite database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(test_db):
    """Create a test client with dependency override."""
    def override_get_db():
        try:
            yield test_db
        except Exception:
            test_db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def category(test_db):
    category = ProductCategory(category_name="Antibiotics", description="Anti-infectives")
    test_db.add(category)
    test_db.commit()
    return category


@pytest.fixture
def formulation(test_db):
    formulation = ProductFormulation(formulation_name="Tablet")
    test_db.add(formulation)
    test_db.commit()
    return formulation


@pytest.fixture
def supplier(test_db):
    supplier = Supplier(supplier_name="Acme Pharma Distributors", supplier_code="ACME")
    test_db.add(supplier)
    test_db.commit()
    return supplier


@pytest.fixture
def product(test_db, category, formulation):
    """Amoxicillin 500: base cost 5.00, low at 10 in the godown and 5 at a rep."""
    product = Product(
        product_code="AMX500",
        product_name="Amoxicillin 500mg",
        generic_name="Amoxicillin",
        manufacturer="Generic Labs",
        category_id=category.id,
        formulation_id=formulation.id,
        base_cost_per_strip=Decimal("5.00"),
        min_stock_level_godown=10,
        min_stock_level_mr=5
    )
    test_db.add(product)
    test_db.commit()
    return product


@pytest.fixture
def other_product(test_db, category, formulation):
    product = Product(
        product_code="PCM650",
        product_name="Paracetamol 650mg",
        generic_name="Paracetamol",
        manufacturer="Generic Labs",
        category_id=category.id,
        formulation_id=formulation.id,
        base_cost_per_strip=Decimal("2.50"),
        min_stock_level_godown=20,
        min_stock_level_mr=5
    )
    test_db.add(product)
    test_db.commit()
    return product


@pytest.fixture
def batch(test_db, product):
    batch = ProductBatch(
        product_id=product.id,
        batch_number="B-001",
        manufacturing_date=date(2024, 1, 1),
        expiry_date=date(2030, 12, 31)
    )
    test_db.add(batch)
    test_db.commit()
    return batch


@pytest.fixture
def second_batch(test_db, product):
    batch = ProductBatch(
        product_id=product.id,
        batch_number="B-002",
        manufacturing_date=date(2024, 3, 1),
        expiry_date=date(2031, 2, 28),
        batch_cost_per_strip=Decimal("6.00")
    )
    test_db.add(batch)
    test_db.commit()
    return batch


@pytest.fixture
def other_batch(test_db, other_product):
    batch = ProductBatch(
        product_id=other_product.id,
        batch_number="P-100",
        manufacturing_date=date(2024, 2, 1),
        expiry_date=date(2030, 6, 30)
    )
    test_db.add(batch)
    test_db.commit()
    return batch


@pytest.fixture
def box_unit(test_db, product):
    """Strip (base) and Box of 10 strips for the sample product."""
    strip = PackagingUnit(
        product_id=product.id,
        unit_name="Strip",
        conversion_factor_to_strips=1,
        is_base_unit=True,
        order_in_hierarchy=1
    )
    box = PackagingUnit(
        product_id=product.id,
        unit_name="Box",
        conversion_factor_to_strips=10,
        order_in_hierarchy=2,
        default_purchase_unit=True
    )
    test_db.add_all([strip, box])
    test_db.commit()
    return box


@pytest.fixture
def templates(test_db):
    seed_packaging_templates(test_db)


def line(product, batch, quantity, **extra):
    """JSON body for one movement line."""
    payload = {"product_id": str(product.id), "batch_id": str(batch.id), "quantity": quantity}
    payload.update(extra)
    return payload


@pytest.fixture
def make_line():
    return line


@pytest.fixture
def purchase(client, make_line):
    """Post a purchase of ``quantity`` strips into the godown and return the response body."""
    def _purchase(product, batch, quantity, cost="5.00", **extra):
        body = {"lines": [make_line(product, batch, quantity, cost_per_strip=cost)]}
        body.update(extra)
        response = client.post("/api/v1/purchases", json=body)
        assert response.status_code == 201, response.text
        return response.json()
    return _purchase


@pytest.fixture
def godown_stock(client):
    """Materialized balance rows for the godown, keyed by (product_id, batch_id)."""
    def _stock(location="GODOWN"):
        response = client.get("/api/v1/stock/balances", params={"location": location, "include_empty": True})
        assert response.status_code == 200, response.text
        return {(row["product_id"], row["batch_id"]): row for row in response.json()}
    return _stock
