"""
Pytest fixtures for the back-office API tests.

Provides the in-memory application, per-test table clearing, factories for
catalog/inventory/customer rows and an authenticated operator.
"""

import pytest

from verger import create_app
from verger.extensions import db
from verger.models import Customer, Product
from verger.services import inventory_service
from verger.services.auth_service import create_user
from verger.services.session_service import SessionContext, create_session


OPERATOR_EMAIL = "ops@verger.test"
OPERATOR_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'PERSISTENCE_RETRY_ATTEMPTS': 1,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before the test runs."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def operator(db_session):
    """Active operator account (low bcrypt cost to keep tests fast)."""
    return create_user(OPERATOR_EMAIL, OPERATOR_PASSWORD, display_name="Ops", rounds=4)


@pytest.fixture(scope='function')
def session_context(operator):
    return SessionContext.for_user(operator)


@pytest.fixture(scope='function')
def token(operator):
    _, plaintext = create_session(operator.id)
    return plaintext


@pytest.fixture(scope='function')
def headers(token):
    return auth_headers(token)


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(company_name="Primeurs du Sud", contact_name="Claire Martin")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def make_product(db_session):
    """
    Factory: make_product(name, price, stock=None) -> product id.

    When `stock` is given an inventory record is created with that quantity.
    """
    def _make(name: str, price: float, stock: float | None = None, unit: str = "kg") -> int:
        product = Product(name=name, price=price)
        db_session.add(product)
        db_session.commit()
        if stock is not None:
            inventory_service.set_stock(product.id, stock, unit=unit)
        return product.id

    return _make


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
