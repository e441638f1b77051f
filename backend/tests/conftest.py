"""
Pytest fixtures for the ledger engine tests.

Provides an in-memory database, a per-test clean slate, a test client and
small catalog fixtures (supplier, customer, materials, products, accounts).
"""

from datetime import date
from decimal import Decimal

import pytest

from eggpack import create_app
from eggpack.config import TestConfig
from eggpack.extensions import db
from eggpack.services import catalog_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def today():
    return date(2024, 3, 15)


@pytest.fixture(scope='function')
def supplier(db_session):
    return catalog_service.create_supplier(name="CV Pulp Jaya", contact_person="Budi", phone="0811")


@pytest.fixture(scope='function')
def customer(db_session):
    return catalog_service.create_customer(name="Toko Sari", phone="0812", customer_type="toko")


@pytest.fixture(scope='function')
def flour(db_session):
    """Raw material with 100 kg on hand at Rp2000/kg."""
    return catalog_service.create_raw_material(
        name="FlourX", unit="kg", stock_quantity=100, unit_cost=2000, minimum_stock=10
    )


@pytest.fixture(scope='function')
def film(db_session):
    return catalog_service.create_raw_material(
        name="Shrink film", unit="roll", stock_quantity=20, unit_cost=Decimal("15000"), minimum_stock=5
    )


@pytest.fixture(scope='function')
def product_a(db_session):
    return catalog_service.create_product(name="Egg tray 30", unit="pcs", selling_price=2500)


@pytest.fixture(scope='function')
def product_b(db_session):
    return catalog_service.create_product(name="Egg box 10", unit="pcs", selling_price=1500)


@pytest.fixture(scope='function')
def bank_account(db_session):
    return catalog_service.create_bank_account(
        bank_name="BCA", account_name="PT Telur Nusantara", account_number="1234567890"
    )
