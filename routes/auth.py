"""
Login endpoints for the two tenant surfaces.

``/auth`` serves the customer storefront, ``/admin/auth`` the merchant and
admin back office. Both are built from the same factory and differ only in
their ``SurfacePolicy``.

Security notes
--------------
* Unknown email, wrong password and (unless DISCLOSE_LOCKOUT is set) a locked
  account all return the same 401 "Invalid credentials".
* A 2FA account that passes the password step gets a challenge token, not a
  session. ``/login/2fa`` trades token + code for the session.
* Role gating happens here, after the authenticator reports success.
"""

import logging

from flask import Blueprint, current_app, g, jsonify, request

from models import db
from security.account_store import SqlAccountStore
from security.authenticator import CredentialAuthenticator
from security.challenge import SqlChallengeStore
from security.errors import RateLimited, RoleRejected
from security.outcomes import TwoFactorRequired, outcome_error
from security.policy import ADMIN_SURFACE, CUSTOMER_SURFACE, AuthSettings, SurfacePolicy
from security.rate_limit import check_and_increment_login_rate
from utils.audit import SqlAuditSink
from utils.auth_context import load_current_user, login_required, sign_in, sign_out

logger = logging.getLogger(__name__)


def client_ip() -> str:
    # already rewritten by ProxyFix when TRUSTED_PROXY_HOPS is set
    return request.remote_addr or "unknown"


def build_authenticator(policy: SurfacePolicy) -> CredentialAuthenticator:
    return CredentialAuthenticator(
        accounts=SqlAccountStore(db.session),
        audit=SqlAuditSink(
            db.session,
            policy.audit_model,
            attempts=current_app.config.get("AUDIT_WRITE_ATTEMPTS", 3),
        ),
        challenges=SqlChallengeStore(db.session),
        policy=policy,
        settings=AuthSettings.from_config(current_app.config),
    )


def make_auth_blueprint(policy: SurfacePolicy, url_prefix: str) -> Blueprint:
    bp = Blueprint(f"{policy.name}_auth", __name__, url_prefix=url_prefix)

    @bp.before_request
    def _load_user():
        load_current_user(policy.name)

    def _enforce_rate_limit(ip: str):
        allowed, retry_after = check_and_increment_login_rate(policy.name, ip)
        if not allowed:
            raise RateLimited(retry_after_seconds=retry_after)

    def _finish(outcome):
        if isinstance(outcome, TwoFactorRequired):
            return jsonify(
                two_factor_required=True,
                challenge_token=outcome.challenge_token,
                expires_at=outcome.expires_at.isoformat(),
            ), 200

        if not outcome.succeeded:
            raise outcome_error(outcome, disclose_lockout=current_app.config.get("DISCLOSE_LOCKOUT", False))

        account = outcome.account
        if not policy.allows(account.role):
            logger.warning("[%s] user %s with role %s rejected at this surface", policy.name, account.id, account.role)
            raise RoleRejected()

        sign_in(policy.name, account)
        return jsonify(message="Login OK", user=account.to_dict()), 200

    @bp.post("/login")
    def login():
        data = request.get_json(silent=True) or {}
        ip = client_ip()
        _enforce_rate_limit(ip)

        outcome = build_authenticator(policy).authenticate(
            data.get("email"),
            data.get("password"),
            data.get("code"),
            ip=ip,
            user_agent=request.headers.get("User-Agent"),
        )
        return _finish(outcome)

    @bp.post("/login/2fa")
    def login_two_factor():
        data = request.get_json(silent=True) or {}
        ip = client_ip()
        _enforce_rate_limit(ip)

        outcome = build_authenticator(policy).complete_two_factor(
            data.get("challenge_token"),
            data.get("code"),
            ip=ip,
            user_agent=request.headers.get("User-Agent"),
        )
        return _finish(outcome)

    @bp.get("/me")
    @login_required
    def me():
        user = g.user
        return jsonify(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role.value,
            two_factor_enabled=user.is_two_factor_enabled,
        ), 200

    @bp.post("/logout")
    @login_required
    def logout():
        sign_out(policy.name)
        return jsonify(message="Logged out"), 200

    return bp


auth_bp = make_auth_blueprint(CUSTOMER_SURFACE, "/auth")
admin_auth_bp = make_auth_blueprint(ADMIN_SURFACE, "/admin/auth")
