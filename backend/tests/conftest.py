"""
Pytest fixtures for the POS backend tests.

Provides an in-memory database, per-test table cleanup, product fixtures
and a test client.
"""

import pytest
from posadmin import create_app
from posadmin.extensions import db
from posadmin.models import Product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DB_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
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


def _make_product(session, name, selling_cents, stock=0, purchase_cents=0, barcode=None):
    product = Product(
        name=name,
        barcode=barcode,
        purchase_price_cents=purchase_cents,
        selling_price_cents=selling_cents,
        stock_quantity=stock,
    )
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def widget(db_session):
    """Stock 100, sells at 15.00, costs 9.00."""
    return _make_product(db_session, "Widget", 1500, stock=100, purchase_cents=900, barcode="1111")


@pytest.fixture(scope='function')
def gadget(db_session):
    """Stock 5, sells at 10.00, costs 4.00."""
    return _make_product(db_session, "Gadget", 1000, stock=5, purchase_cents=400, barcode="2222")


@pytest.fixture(scope='function')
def product_factory(db_session):
    """Create and commit a product: product_factory(name, selling_cents, stock=0, ...)."""
    def factory(name, selling_cents, **kwargs):
        return _make_product(db_session, name, selling_cents, **kwargs)
    return factory


@pytest.fixture(scope='function')
def stock_of(db_session):
    """Fresh read of a product's stock, bypassing the identity map."""
    def read(product_id: int) -> int:
        return db.session.get(Product, product_id, populate_existing=True).stock_quantity
    return read
