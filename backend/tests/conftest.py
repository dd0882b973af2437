"""
Pytest fixtures for TokoPOS backend tests.

Provides the application, a per-test clean database, a test client,
a cashier account and a few catalogue products.
"""
from decimal import Decimal

import pytest

from tokopos import create_app
from tokopos.extensions import db
from tokopos.models import Product, User
from tokopos.services.auth_service import hash_password
from tokopos.services.session_service import create_session


CASHIER_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'STORE_TIMEZONE': 'UTC',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test, schema kept."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def cashier(db_session):
    user = User(
        name="Kasir Satu",
        email="kasir@tokopos.test",
        password_hash=hash_password(CASHIER_PASSWORD, rounds=4),
        role="Staff",
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(sku, name, price, stock, category="Sembako")."""
    def _make(sku: str, name: str, price, stock: int, category: str = "Sembako") -> Product:
        product = Product(
            sku=sku,
            name=name,
            category=category,
            price=Decimal(str(price)),
            stock=stock,
            min_stock=5,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def rice(make_product):
    return make_product("BRS-001", "Beras 5kg", 100000, 50)


@pytest.fixture(scope='function')
def oil(make_product):
    return make_product("MYK-001", "Minyak Goreng 2L", 250000, 20)


@pytest.fixture(scope='function')
def token(cashier):
    _, plaintext = create_session(cashier.id)
    return plaintext


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers(token):
    return auth_headers(token)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "concurrent: Concurrency tests")
