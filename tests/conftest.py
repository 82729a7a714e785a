"""
Test configuration and fixtures.

- ``app`` / ``client``: Flask app on in-memory SQLite, tables created per test
- ``make_user``: persisted ``User`` factory with a cheap bcrypt cost
- ``clock``: controllable clock for the authenticator
- in-memory store fixtures for unit tests of the authenticator
"""

from datetime import datetime

import pyotp
import pytest

from app import create_app
from config import TestingConfig
from models import db
from models.user import Role, User
from security.password import hash_password
from tests.fakes import FrozenClock, InMemoryAccountStore, InMemoryAuditSink, InMemoryChallengeStore

TEST_ROUNDS = TestingConfig.BCRYPT_ROUNDS


# ==================== Flask / database ====================

@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Factory: make_user(email, password=..., role=Role.CUSTOMER, **fields)."""

    def _make(email="alice@x.com", password="correct123", role=Role.CUSTOMER, **fields):
        user = User(
            email=email.lower(),
            name=fields.pop("name", "Test User"),
            role=role,
            password_hash=hash_password(password, rounds=TEST_ROUNDS) if password else None,
            **fields,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


# ==================== Authenticator doubles ====================

@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 1, 12, 0, 0))


@pytest.fixture
def accounts():
    return InMemoryAccountStore(rounds=TEST_ROUNDS)


@pytest.fixture
def audit():
    return InMemoryAuditSink()


@pytest.fixture
def challenges():
    return InMemoryChallengeStore()


@pytest.fixture
def totp_secret():
    return pyotp.random_base32()
