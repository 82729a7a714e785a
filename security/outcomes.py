"""
Results of an authentication attempt.

``CredentialAuthenticator`` returns one of these instead of raising, so the
calling surface decides how much of the distinction it shows to the user.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from security.errors import (
    AccountLockedError,
    AuthError,
    AuthenticationFailure,
    TwoFactorFailure,
)


@dataclass(frozen=True)
class AccountRecord:
    """Snapshot of the credential fields of one user row."""
    id: int
    email: str
    role: str
    password_hash: Optional[str]
    failed_login_attempts: int = 0
    lockout_until: Optional[datetime] = None
    is_two_factor_enabled: bool = False
    two_factor_secret: Optional[str] = None
    name: Optional[str] = None
    last_totp_step: Optional[int] = None

    def has_password(self) -> bool:
        return bool(self.password_hash)

    def is_locked(self, now: datetime) -> bool:
        return self.lockout_until is not None and self.lockout_until > now

    def public(self) -> "AuthenticatedAccount":
        return AuthenticatedAccount(id=self.id, email=self.email, role=self.role, name=self.name)


@dataclass(frozen=True)
class AuthenticatedAccount:
    """What a successful login hands back. Never carries the hash or 2FA secret."""
    id: int
    email: str
    role: str
    name: Optional[str] = None

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role, "name": self.name}


class Outcome:
    succeeded = False


@dataclass(frozen=True)
class Success(Outcome):
    account: AuthenticatedAccount
    succeeded = True


@dataclass(frozen=True)
class AccountNotFound(Outcome):
    pass


@dataclass(frozen=True)
class AccountLocked(Outcome):
    retry_after_seconds: int = 0


@dataclass(frozen=True)
class InvalidPassword(Outcome):
    pass


@dataclass(frozen=True)
class TwoFactorRequired(Outcome):
    challenge_token: str
    expires_at: datetime


@dataclass(frozen=True)
class InvalidTwoFactorCode(Outcome):
    pass


@dataclass(frozen=True)
class ChallengeExpired(Outcome):
    """Challenge token unknown, consumed, expired or issued for another surface."""


def outcome_error(outcome: Outcome, disclose_lockout: bool = False) -> AuthError:
    """Map a failed outcome to the error the caller should render."""
    if isinstance(outcome, AccountLocked) and disclose_lockout:
        return AccountLockedError(retry_after_seconds=outcome.retry_after_seconds)
    if isinstance(outcome, InvalidTwoFactorCode):
        return TwoFactorFailure()
    if isinstance(outcome, (AccountNotFound, AccountLocked, InvalidPassword, ChallengeExpired)):
        return AuthenticationFailure()
    raise TypeError(f"{type(outcome).__name__} is not a failure outcome")
