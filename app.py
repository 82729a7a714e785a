import logging

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix
from config import Config
from routes import health_bp, auth_bp, admin_auth_bp, audit_bp

from models import db
from flask_migrate import Migrate
from security.errors import AuthError, InfrastructureError
from utils.logger import configure_logging

logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    hops = app.config.get("TRUSTED_PROXY_HOPS", 0)
    if hops:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_auth_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.errorhandler(AuthError)
    def _auth_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(InfrastructureError)
    def _infrastructure_error(err):
        logger.error("request aborted: %s", err, exc_info=err)
        db.session.rollback()
        return jsonify(error="Service temporarily unavailable"), 503

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Cache-Control"] = "no-store"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from models.user import User, Role
from security.password import hash_password
from security.totp import generate_secret, provisioning_uri
from utils.validation import BCRYPT_MAX_BYTES, is_valid_email, is_valid_password, normalize_email

_ROLE_CHOICE = click.Choice([r.value for r in Role], case_sensitive=False)


def _find_user(email):
    user = User.query.filter_by(email=normalize_email(email)).first()
    if not user:
        raise click.ClickException("User not found")
    return user


def register_cli(app):
    @app.cli.command("create-account")
    @click.argument("email")
    @click.option("--role", type=_ROLE_CHOICE, default=Role.CUSTOMER.value, show_default=True)
    @click.option("--name", default=None)
    @click.password_option()
    def create_account(email, role, name, password):
        """Create an account with a password credential."""
        email = normalize_email(email)
        if not is_valid_email(email, app.config.get("EMAIL_MAX_LEN", 255)):
            raise click.BadParameter("Invalid email", param_hint="EMAIL")

        min_len = app.config.get("PASSWORD_MIN_LEN", 12)
        if len(password) < min_len:
            raise click.BadParameter(f"Password must be at least {min_len} characters", param_hint="--password")
        if not is_valid_password(password, app.config.get("PASSWORD_MAX_LEN", BCRYPT_MAX_BYTES)):
            raise click.BadParameter(
                f"Password must be at most {BCRYPT_MAX_BYTES} bytes when UTF-8 encoded", param_hint="--password"
            )

        if User.query.filter_by(email=email).first():
            raise click.ClickException("Email already registered")

        user = User(
            email=email,
            name=name,
            role=Role(role.upper()),
            password_hash=hash_password(password, rounds=app.config.get("BCRYPT_ROUNDS", 12)),
        )
        db.session.add(user)
        db.session.commit()
        click.echo(f"{user.email} created as {user.role.value}")

    @app.cli.command("set-role")
    @click.argument("email")
    @click.argument("role", type=_ROLE_CHOICE)
    def set_role(email, role):
        """Change the role of an existing account."""
        user = _find_user(email)
        user.role = Role(role.upper())
        db.session.commit()
        click.echo(f"{user.email} is now {user.role.value}")

    @app.cli.command("enable-2fa")
    @click.argument("email")
    def enable_two_factor(email):
        """Generate a TOTP secret and print the authenticator-app URI."""
        user = _find_user(email)
        user.two_factor_secret = generate_secret()
        user.is_two_factor_enabled = True
        db.session.commit()
        click.echo(provisioning_uri(user.two_factor_secret, user.email, app.config.get("TOTP_ISSUER", "Storefront")))

    @app.cli.command("disable-2fa")
    @click.argument("email")
    def disable_two_factor(email):
        user = _find_user(email)
        user.two_factor_secret = None
        user.is_two_factor_enabled = False
        db.session.commit()
        click.echo(f"2FA disabled for {user.email}")

    @app.cli.command("unlock")
    @click.argument("email")
    def unlock(email):
        """Clear the failed-attempt counter and any lockout."""
        user = _find_user(email)
        user.failed_login_attempts = 0
        user.lockout_until = None
        db.session.commit()
        click.echo(f"{user.email} unlocked")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
