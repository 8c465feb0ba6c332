"""
Pytest fixtures for stockledger backend tests.

Provides test database setup, an admin session, and catalog helpers.
"""

import pytest
from stockledger import create_app
from stockledger.extensions import db
from stockledger.services import catalog_service, session_service
from stockledger.services.auth_service import create_admin

ADMIN_EMAIL = "admin@stockledger.test"
ADMIN_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_FOLDER': str(tmp_path_factory.mktemp("uploads")),
        'STORE_TIMEZONE': 'UTC',
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
def admin(db_session):
    """Admin account (low bcrypt cost keeps the suite fast)."""
    return create_admin(email=ADMIN_EMAIL, password=ADMIN_PASSWORD, name="Admin", rounds=4)


@pytest.fixture(scope='function')
def admin_headers(admin):
    """Authorization headers for the admin fixture."""
    _, token = session_service.create_session(admin.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory for catalog items; keyword arguments override the defaults."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        patch = {
            "name": f"Gold Ring {counter['n']}",
            "description": "22k gold band",
            "original_price_cents": 15000,
            "selling_price_cents": 15000,
            "cost_price_cents": 10000,
            "quantity": 5,
        }
        patch.update(overrides)
        return catalog_service.create_item(patch=patch)

    return _make


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
