"""
Single-use, time-boxed tokens for the second login step.

After the password checks out on a 2FA account the client receives a random
token instead of a session; the follow-up request presents that token and the
code, never the password again. Only the sha256 of the token is stored.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError

from models.two_factor_challenge import TwoFactorChallenge
from security.errors import InfrastructureError


def _hash_token(token: str) -> str:
    # SHA-256 is fine for hashing random tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class ActiveChallenge:
    id: int
    user_id: int
    surface: str
    expires_at: datetime
    attempts: int


class SqlChallengeStore:
    def __init__(self, session):
        self.session = session

    def create(
        self,
        user_id: int,
        surface: str,
        ttl: timedelta,
        now: datetime,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> tuple[str, datetime]:
        """Returns (raw_token, expires_at). The raw token is not persisted."""
        raw_token = secrets.token_urlsafe(32)
        expires_at = now + ttl
        row = TwoFactorChallenge(
            user_id=user_id,
            surface=surface,
            token_hash=_hash_token(raw_token),
            created_at=now,
            expires_at=expires_at,
            attempts=0,
            ip=ip,
            user_agent=user_agent[:255] if user_agent else None,
        )
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InfrastructureError("challenge write failed") from exc
        return raw_token, expires_at

    def find_active(self, raw_token: str, surface: str, now: datetime) -> Optional[ActiveChallenge]:
        if not raw_token:
            return None
        stmt = select(TwoFactorChallenge).where(
            TwoFactorChallenge.token_hash == _hash_token(raw_token),
            TwoFactorChallenge.consumed_at.is_(None),
        )
        try:
            row = self.session.execute(stmt).scalars().first()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InfrastructureError("challenge lookup failed") from exc

        if not row or row.surface != surface or row.expires_at <= now:
            return None
        return ActiveChallenge(
            id=row.id,
            user_id=row.user_id,
            surface=row.surface,
            expires_at=row.expires_at,
            attempts=row.attempts,
        )

    def register_failure(self, challenge_id: int, max_attempts: int, now: datetime) -> int:
        """Counts a wrong code; burns the challenge once ``max_attempts`` is reached."""
        new_attempts = TwoFactorChallenge.attempts + 1
        stmt = (
            update(TwoFactorChallenge)
            .where(TwoFactorChallenge.id == challenge_id)
            .values(
                attempts=new_attempts,
                consumed_at=case(
                    (new_attempts >= max_attempts, now),
                    else_=TwoFactorChallenge.consumed_at,
                ),
            )
            .returning(TwoFactorChallenge.attempts)
            .execution_options(synchronize_session=False)
        )
        try:
            attempts = self.session.execute(stmt).scalar_one_or_none()
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InfrastructureError("challenge write failed") from exc
        return attempts or 0

    def consume(self, challenge_id: int, now: datetime) -> bool:
        """
        Marks the challenge used. Returns False if another request got there
        first, so a token can complete at most one login.
        """
        stmt = (
            update(TwoFactorChallenge)
            .where(
                TwoFactorChallenge.id == challenge_id,
                TwoFactorChallenge.consumed_at.is_(None),
            )
            .values(consumed_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InfrastructureError("challenge write failed") from exc
        return result.rowcount == 1
