"""
Per-surface policy and lockout settings.

The same ``CredentialAuthenticator`` serves the customer storefront and the
admin / merchant back office. What differs between them lives here: which
roles a surface accepts after a successful login and which table its audit
events go to.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import FrozenSet, Type

from models.audit_log import AdminAuditLog, AuditLog
from models.user import Role


@dataclass(frozen=True)
class SurfacePolicy:
    name: str
    allowed_roles: FrozenSet[str]
    audit_model: Type

    def allows(self, role) -> bool:
        value = role.value if isinstance(role, Role) else role
        return value in self.allowed_roles


CUSTOMER_SURFACE = SurfacePolicy(
    name="web",
    allowed_roles=frozenset({Role.CUSTOMER.value}),
    audit_model=AuditLog,
)

ADMIN_SURFACE = SurfacePolicy(
    name="admin",
    allowed_roles=frozenset({Role.SUPERADMIN.value, Role.ADMIN.value, Role.MERCHANT.value}),
    audit_model=AdminAuditLog,
)

SURFACES = {p.name: p for p in (CUSTOMER_SURFACE, ADMIN_SURFACE)}


@dataclass(frozen=True)
class AuthSettings:
    max_login_attempts: int = 5
    lockout_minutes: int = 30
    bcrypt_rounds: int = 12
    email_max_len: int = 255
    password_max_len: int = 72
    totp_valid_window: int = 1
    challenge_ttl_seconds: int = 300
    challenge_max_attempts: int = 5

    @property
    def lockout_duration(self) -> timedelta:
        return timedelta(minutes=self.lockout_minutes)

    @property
    def challenge_ttl(self) -> timedelta:
        return timedelta(seconds=self.challenge_ttl_seconds)

    @classmethod
    def from_config(cls, config) -> "AuthSettings":
        defaults = cls()
        return cls(
            max_login_attempts=int(config.get("MAX_LOGIN_ATTEMPTS", defaults.max_login_attempts)),
            lockout_minutes=int(config.get("LOCKOUT_MINUTES", defaults.lockout_minutes)),
            bcrypt_rounds=int(config.get("BCRYPT_ROUNDS", defaults.bcrypt_rounds)),
            email_max_len=int(config.get("EMAIL_MAX_LEN", defaults.email_max_len)),
            password_max_len=int(config.get("PASSWORD_MAX_LEN", defaults.password_max_len)),
            totp_valid_window=int(config.get("TOTP_VALID_WINDOW", defaults.totp_valid_window)),
            challenge_ttl_seconds=int(
                config.get("TWO_FACTOR_CHALLENGE_TTL_SECONDS", defaults.challenge_ttl_seconds)
            ),
            challenge_max_attempts=int(
                config.get("TWO_FACTOR_MAX_ATTEMPTS", defaults.challenge_max_attempts)
            ),
        )
