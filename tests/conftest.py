"""Shared test fixtures for all tests."""
import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from butcher_pos.db import Base, get_db
from butcher_pos.models import ProductRecord, ProductBatchRecord
from butcher_pos.main import app
from butcher_pos.registry import CartRegistry, get_registry
from butcher_pos.schemas import Product, ProductBatch, SaleType, InventoryType


def make_product(**overrides) -> Product:
    """Catalog product with sensible defaults for pure engine tests."""
    data = dict(
        id="p-unit",
        sku="SKU-UNIT",
        name="Chorizo Parrillero",
        sale_type=SaleType.UNIT,
        inventory_type=InventoryType.UNIT,
        price=Decimal("12"),
        stock_units=None,
    )
    data.update(overrides)
    return Product(**data)


def make_batch(**overrides) -> ProductBatch:
    data = dict(
        id="b-1",
        product_id="p-vac",
        batch_number="LOT-001",
        actual_weight=Decimal("2.500"),
        unit_price=Decimal("120"),
        packed_at=datetime(2024, 1, 10, 8, 0),
    )
    data.update(overrides)
    return ProductBatch(**data)


@pytest.fixture
def unit_product():
    return make_product()


@pytest.fixture
def stocked_product():
    """Unit-tracked product with 5 in stock."""
    return make_product(id="p-stock", sku="SKU-STOCK", name="Coca Cola 2L", price=Decimal("15"), stock_units=5)


@pytest.fixture
def weight_product():
    return make_product(
        id="p-weight", sku="SKU-WEIGHT", name="Carne Molida", barcode="000123",
        sale_type=SaleType.WEIGHT, inventory_type=InventoryType.WEIGHT, unit="kg", price=Decimal("50"),
    )


@pytest.fixture
def vacuum_product():
    return make_product(
        id="p-vac", sku="SKU-VAC", name="Picaña Envasada", barcode="000456",
        sale_type=SaleType.WEIGHT, inventory_type=InventoryType.VACUUM_PACKED, unit="kg", price=Decimal("48"),
    )


@pytest.fixture(scope="function")
def test_db():
    """Create a fresh in-memory SQLite database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sample_products(test_db):
    """Catalog rows: unit with stock, loose weight and vacuum-packed."""
    products = [
        ProductRecord(
            id="p-stock", sku="SKU-STOCK", name="Coca Cola 2L", barcode="7771234567890",
            sale_type="UNIT", inventory_type="UNIT", price=Decimal("15"), stock_units=5,
        ),
        ProductRecord(
            id="p-weight", sku="SKU-WEIGHT", name="Carne Molida", barcode="000123",
            sale_type="WEIGHT", inventory_type="WEIGHT", unit="kg", price=Decimal("50"),
        ),
        ProductRecord(
            id="p-vac", sku="SKU-VAC", name="Picaña Envasada", barcode="000456",
            sale_type="WEIGHT", inventory_type="VACUUM_PACKED", unit="kg", price=Decimal("48"),
        ),
        ProductRecord(
            id="p-old", sku="SKU-OLD", name="Charque", barcode="000789",
            sale_type="UNIT", inventory_type="UNIT", price=Decimal("30"), is_active=False,
        ),
    ]
    for p in products:
        test_db.add(p)
    test_db.commit()
    return products


@pytest.fixture
def sample_batches(test_db, sample_products):
    """Two registered packages of the vacuum-packed product."""
    batches = [
        ProductBatchRecord(
            id="b-old", product_id="p-vac", batch_number="LOT-001",
            actual_weight=Decimal("2.500"), unit_price=Decimal("120"),
            packed_at=datetime(2024, 1, 10, 8, 0),
        ),
        ProductBatchRecord(
            id="b-new", product_id="p-vac", batch_number="LOT-002",
            actual_weight=Decimal("2.500"), unit_price=Decimal("120"),
            packed_at=datetime(2024, 1, 12, 8, 0),
        ),
    ]
    for b in batches:
        test_db.add(b)
    test_db.commit()
    return batches


@pytest.fixture
def cart_registry():
    return CartRegistry()


@pytest.fixture(scope="function")
def client(test_db, cart_registry):
    """Create a test client with dependency overrides."""
    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: cart_registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
