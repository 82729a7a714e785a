from datetime import timedelta

import pytest

from models.user import Role, User
from security.password import verify_password
from tests.utils import reload
from utils.clock import utcnow


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def test_create_account(runner):
    result = runner.invoke(args=[
        "create-account", "Bob@X.com", "--role", "merchant", "--name", "Bob",
        "--password", "a-long-password",
    ])

    assert result.exit_code == 0, result.output
    assert "bob@x.com created as MERCHANT" in result.output
    user = User.query.filter_by(email="bob@x.com").one()
    assert user.role == Role.MERCHANT
    assert verify_password("a-long-password", user.password_hash)


def test_create_account_rejects_short_password(runner):
    result = runner.invoke(args=["create-account", "bob@x.com", "--password", "short"])

    assert result.exit_code != 0
    assert User.query.count() == 0


def test_create_account_rejects_duplicate(runner, make_user):
    make_user(email="bob@x.com")

    result = runner.invoke(args=["create-account", "bob@x.com", "--password", "a-long-password"])

    assert result.exit_code == 1
    assert "Email already registered" in result.output


def test_set_role(runner, make_user):
    user = make_user()

    result = runner.invoke(args=["set-role", "alice@x.com", "admin"])

    assert result.exit_code == 0, result.output
    assert reload(user).role == Role.ADMIN


def test_enable_and_disable_two_factor(runner, make_user):
    user = make_user()

    result = runner.invoke(args=["enable-2fa", "alice@x.com"])

    assert result.exit_code == 0, result.output
    assert result.output.startswith("otpauth://totp/")
    user = reload(user)
    assert user.is_two_factor_enabled
    assert user.two_factor_secret

    result = runner.invoke(args=["disable-2fa", "alice@x.com"])

    assert result.exit_code == 0, result.output
    user = reload(user)
    assert not user.is_two_factor_enabled
    assert user.two_factor_secret is None


def test_unlock(runner, make_user):
    user = make_user(failed_login_attempts=5, lockout_until=utcnow() + timedelta(minutes=30))

    result = runner.invoke(args=["unlock", "alice@x.com"])

    assert result.exit_code == 0, result.output
    user = reload(user)
    assert user.failed_login_attempts == 0
    assert user.lockout_until is None


def test_unknown_user(runner):
    result = runner.invoke(args=["unlock", "nobody@x.com"])

    assert result.exit_code == 1
    assert "User not found" in result.output


def test_create_account_rejects_password_over_bcrypt_limit(runner):
    result = runner.invoke(args=["create-account", "bob@x.com", "--password", "p" * 80])

    assert result.exit_code == 2
    assert "72 bytes" in result.output
    assert User.query.count() == 0
