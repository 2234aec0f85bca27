"""
Pytest fixtures for the hardware POS backend tests.

Provides the app on an in-memory database, a per-test table wipe, users of
both roles with login helpers, and JSON local stores under tmp_path.
"""

import json

import pytest

from hardware_pos import create_app
from hardware_pos.extensions import db
from hardware_pos.local_store import LocalDataAccess, LocalRecordStore
from hardware_pos.services import products_service, suppliers_service
from hardware_pos.services.auth_service import create_user

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_LEVEL': 'DEBUG',
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


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user("Alice Admin", "admin@example.com", PASSWORD, role="admin")


@pytest.fixture(scope='function')
def cashier_user(db_session):
    return create_user("Carl Cashier", "cashier@example.com", PASSWORD, role="cashier")


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, admin_user.email))


@pytest.fixture(scope='function')
def cashier_headers(client, cashier_user):
    return auth_headers(get_auth_token(client, cashier_user.email))


@pytest.fixture(scope='function')
def supplier(db_session):
    return suppliers_service.save_supplier({"name": "Acme", "phone": "0700000000", "company": "Acme Ltd"})


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(name="Bolt", quantity=10, ...) -> product dict."""
    def _make(**fields):
        patch = {
            "name": "Bolt",
            "category": "Hardware",
            "sku": None,
            "buying_price_cents": 300,
            "selling_price_cents": 500,
            "quantity": 10,
            "reorder_level": 2,
        }
        patch.update(fields)
        return products_service.save_product(patch)
    return _make


@pytest.fixture(scope='function')
def local_file(tmp_path):
    """Factory: write a local-store document to disk and return its path."""
    def _write(document: dict, name: str = "local_store.json"):
        path = tmp_path / name
        path.write_text(json.dumps(document), encoding="utf-8")
        return path
    return _write


@pytest.fixture(scope='function')
def local_access():
    """Factory: LocalDataAccess over an in-memory document."""
    def _make(document: dict | None = None):
        return LocalDataAccess(LocalRecordStore(data=document or {}))
    return _make
