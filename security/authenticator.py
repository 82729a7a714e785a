"""
Credential authentication and account lockout.

One ``CredentialAuthenticator`` per login surface, wired with that surface's
``SurfacePolicy`` (audit table, challenge scope). The pipeline is:

    validate -> lookup -> lockout check -> password -> second factor -> record

Every outcome past the lookup writes the account's failure bookkeeping and
an audit row. Those writes are attempted independently; if one fails it is
logged and the outcome the caller sees does not change.

Locked accounts and unknown emails never reach the real hash comparison.
They run a decoy bcrypt check instead so they take as long as a real miss.

Role checks are not done here. The caller inspects ``Success.account.role``
against ``policy.allows``.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from security.errors import InfrastructureError, ValidationError
from security.outcomes import (
    AccountLocked,
    AccountNotFound,
    AccountRecord,
    ChallengeExpired,
    InvalidPassword,
    InvalidTwoFactorCode,
    Outcome,
    Success,
    TwoFactorRequired,
)
from security.password import decoy_verify, verify_password
from security.policy import AuthSettings, SurfacePolicy
from security.totp import matching_step
from utils.audit import LOGIN_FAILED, LOGIN_SUCCESS, AuditEvent
from utils.clock import utcnow
from utils.validation import is_valid_email, is_valid_password, normalize_email

logger = logging.getLogger(__name__)


def _seconds_until(until: datetime, now: datetime) -> int:
    return max(int((until - now).total_seconds()), 1)


class CredentialAuthenticator:
    def __init__(
        self,
        accounts,
        audit,
        challenges,
        policy: SurfacePolicy,
        settings: Optional[AuthSettings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.accounts = accounts
        self.audit = audit
        self.challenges = challenges
        self.policy = policy
        self.settings = settings or AuthSettings()
        self.clock = clock

    # ------------------------------------------------------------------ #
    # First step: email + password (+ code in one shot)
    # ------------------------------------------------------------------ #

    def authenticate(
        self,
        email,
        password,
        code=None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Outcome:
        email = normalize_email(email)
        if not is_valid_email(email, self.settings.email_max_len):
            raise ValidationError(details=["email"])
        if not is_valid_password(password, self.settings.password_max_len):
            raise ValidationError(details=["password"])
        code = self._clean_code(code)

        now = self.clock()
        account = self.accounts.get_by_email(email)

        if account is None or not account.has_password():
            decoy_verify(password, self.settings.bcrypt_rounds)
            logger.warning("[%s] login failed: no password credential for submitted email", self.policy.name)
            return AccountNotFound()

        if account.is_locked(now):
            decoy_verify(password, self.settings.bcrypt_rounds)
            logger.warning("[%s] login refused: user %s is locked", self.policy.name, account.id)
            return AccountLocked(retry_after_seconds=_seconds_until(account.lockout_until, now))

        if not verify_password(password, account.password_hash):
            self._record_failure(account, now, ip, user_agent, reason="password")
            return InvalidPassword()

        if account.is_two_factor_enabled:
            if code is None:
                token, expires_at = self.challenges.create(
                    account.id,
                    self.policy.name,
                    self.settings.challenge_ttl,
                    now,
                    ip=ip,
                    user_agent=user_agent,
                )
                logger.info("[%s] 2FA challenge issued for user %s", self.policy.name, account.id)
                return TwoFactorRequired(challenge_token=token, expires_at=expires_at)

            if not self._accept_code(account, code):
                self._record_failure(account, now, ip, user_agent, reason="2fa")
                return InvalidTwoFactorCode()

        self._record_success(account, now, ip, user_agent)
        return Success(account.public())

    # ------------------------------------------------------------------ #
    # Second step: challenge token + code
    # ------------------------------------------------------------------ #

    def complete_two_factor(
        self,
        challenge_token,
        code,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Outcome:
        if not isinstance(challenge_token, str) or not challenge_token.strip():
            raise ValidationError(details=["challenge_token"])
        code = self._clean_code(code)
        if code is None:
            raise ValidationError(details=["code"])

        now = self.clock()
        challenge = self.challenges.find_active(challenge_token.strip(), self.policy.name, now)
        if challenge is None:
            logger.warning("[%s] 2FA step refused: unknown or expired challenge", self.policy.name)
            return ChallengeExpired()

        account = self.accounts.get_by_id(challenge.user_id)
        if account is None or not account.has_password() or not account.is_two_factor_enabled:
            self.challenges.consume(challenge.id, now)
            return ChallengeExpired()

        if account.is_locked(now):
            logger.warning("[%s] 2FA step refused: user %s is locked", self.policy.name, account.id)
            return AccountLocked(retry_after_seconds=_seconds_until(account.lockout_until, now))

        if not self._accept_code(account, code):
            try:
                self.challenges.register_failure(challenge.id, self.settings.challenge_max_attempts, now)
            except InfrastructureError:
                logger.error("could not count 2FA failure on challenge %s", challenge.id, exc_info=True)
            self._record_failure(account, now, ip, user_agent, reason="2fa")
            return InvalidTwoFactorCode()

        if not self.challenges.consume(challenge.id, now):
            return ChallengeExpired()

        self._record_success(account, now, ip, user_agent)
        return Success(account.public())

    # ------------------------------------------------------------------ #
    # Bookkeeping
    # ------------------------------------------------------------------ #

    @staticmethod
    def _clean_code(code) -> Optional[str]:
        if code is None:
            return None
        if isinstance(code, int) and not isinstance(code, bool):
            code = f"{code:06d}"
        if not isinstance(code, str):
            raise ValidationError(details=["code"])
        code = code.strip()
        return code or None

    def _accept_code(self, account: AccountRecord, code: str) -> bool:
        step = matching_step(account.two_factor_secret, code, self.settings.totp_valid_window)
        if step is None:
            return False
        if account.last_totp_step is not None and step <= account.last_totp_step:
            logger.warning("[%s] 2FA code for user %s was already used", self.policy.name, account.id)
            return False
        if not self.accounts.claim_totp_step(account.id, step):
            # a concurrent login took this step first
            logger.warning("[%s] 2FA code for user %s was already used", self.policy.name, account.id)
            return False
        return True

    def _record_failure(self, account: AccountRecord, now, ip, user_agent, reason: str) -> None:
        try:
            attempts, lockout_until = self.accounts.record_failure(
                account.id,
                now,
                self.settings.max_login_attempts,
                self.settings.lockout_duration,
            )
        except InfrastructureError:
            logger.error("could not record failed login for user %s", account.id, exc_info=True)
        else:
            if attempts >= self.settings.max_login_attempts:
                logger.info(
                    "[%s] user %s locked until %s after %s failed attempts",
                    self.policy.name, account.id, lockout_until, attempts,
                )
            else:
                logger.warning(
                    "[%s] login failed (%s) for user %s, attempt %s",
                    self.policy.name, reason, account.id, attempts,
                )

        self._append_audit(LOGIN_FAILED, account.id, now, ip, user_agent)

    def _record_success(self, account: AccountRecord, now, ip, user_agent) -> None:
        try:
            self.accounts.reset_failures(account.id, now)
        except InfrastructureError:
            logger.error("could not reset login failures for user %s", account.id, exc_info=True)

        self._append_audit(LOGIN_SUCCESS, account.id, now, ip, user_agent)
        logger.info("[%s] login succeeded for user %s", self.policy.name, account.id)

    def _append_audit(self, action: str, user_id: int, now, ip, user_agent) -> None:
        event = AuditEvent(
            user_id=user_id,
            action=action,
            timestamp=now,
            ip_address=ip,
            user_agent=user_agent,
        )
        try:
            self.audit.append(event)
        except InfrastructureError:
            logger.error("audit event %s for user %s was not written", action, user_id, exc_info=True)
