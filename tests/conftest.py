# TokoPOS Terminal Test Suite - Shared Configuration and Fixtures
#
# This module provides:
# - A controllable clock for scan debouncing
# - Local storage and terminal session fixtures
# - A catalogue snapshot shaped like GET /api/pos/products
# - An in-process backend reached through httpx.WSGITransport

from decimal import Decimal
from typing import Dict, List

import httpx
import pytest

from pos_terminal import LocalStore, PosApiClient, TerminalConfig, TerminalSession


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalogue() -> List[Dict]:
    return [
        {"id": 1, "sku": "BRS-001", "name": "Beras 5kg", "category": "Sembako", "price": "100000.00", "stock": 3},
        {"id": 2, "sku": "MYK-001", "name": "Minyak Goreng 2L", "category": "Sembako", "price": "250000.00", "stock": 20},
        {"id": 3, "sku": "APL-KG", "name": "Apel Fuji", "category": "Buah", "price": "42000.00", "stock": 100},
    ]


@pytest.fixture
def store(tmp_path) -> LocalStore:
    return LocalStore(str(tmp_path / "terminal.json"))


@pytest.fixture
def session(store, clock, catalogue) -> TerminalSession:
    terminal = TerminalSession(store, TerminalConfig(storage_path=store.path))
    terminal.cart.clock = clock
    terminal.set_products([dict(p) for p in catalogue])
    return terminal


# =============================================================================
# IN-PROCESS BACKEND
# =============================================================================

CASHIER_EMAIL = "kasir@tokopos.test"
CASHIER_PASSWORD = "Password123!"


@pytest.fixture
def backend_app():
    from tokopos import create_app
    from tokopos.extensions import db
    from tokopos.models import Product
    from tokopos.services.auth_service import create_user
    from tokopos.services.settings_service import seed_default_settings

    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "BCRYPT_ROUNDS": 4,
    })
    with app.app_context():
        db.create_all()
        seed_default_settings()
        create_user("Kasir Satu", CASHIER_EMAIL, CASHIER_PASSWORD)
        db.session.add_all([
            Product(sku="BRS-001", name="Beras 5kg", category="Sembako", price=Decimal("100000"), stock=50),
            Product(sku="MYK-001", name="Minyak Goreng 2L", category="Sembako", price=Decimal("250000"), stock=20),
            Product(sku="APL-KG", name="Apel Fuji", category="Buah", price=Decimal("42000"), stock=100),
        ])
        db.session.commit()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def api(backend_app):
    client = PosApiClient("http://tokopos.test", transport=httpx.WSGITransport(app=backend_app))
    yield client
    client.close()


@pytest.fixture
def logged_in_api(api):
    api.login(CASHIER_EMAIL, CASHIER_PASSWORD)
    return api


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "cart: Cart behaviour tests")
    config.addinivalue_line("markers", "checkout: Checkout totals and submission tests")
    config.addinivalue_line("markers", "storage: Local storage and session tests")
    config.addinivalue_line("markers", "client: API client tests")
    config.addinivalue_line("markers", "e2e: Terminal against an in-process backend")
