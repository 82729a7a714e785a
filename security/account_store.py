"""
Account lookups and lockout bookkeeping against the ``users`` table.

Failure counting is a single ``UPDATE ... SET failed_login_attempts =
failed_login_attempts + 1`` so two concurrent bad logins for the same account
both land; the new count and lockout come back through ``RETURNING``.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from models.user import User
from security.errors import InfrastructureError
from security.outcomes import AccountRecord

logger = logging.getLogger(__name__)


def _to_record(user: User) -> AccountRecord:
    role = user.role.value if hasattr(user.role, "value") else user.role
    return AccountRecord(
        id=user.id,
        email=user.email,
        role=role,
        password_hash=user.password_hash,
        failed_login_attempts=user.failed_login_attempts or 0,
        lockout_until=user.lockout_until,
        is_two_factor_enabled=bool(user.is_two_factor_enabled),
        two_factor_secret=user.two_factor_secret,
        name=user.name,
        last_totp_step=user.last_totp_step,
    )


class SqlAccountStore:
    def __init__(self, session):
        self.session = session

    def get_by_email(self, email: str) -> Optional[AccountRecord]:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        return self._fetch_one(stmt)

    def get_by_id(self, account_id: int) -> Optional[AccountRecord]:
        return self._fetch_one(select(User).where(User.id == account_id))

    def record_failure(
        self,
        account_id: int,
        now: datetime,
        max_attempts: int,
        lockout: timedelta,
    ) -> Tuple[int, Optional[datetime]]:
        """
        Returns (failed_login_attempts, lockout_until) after the increment.
        An existing lockout is only replaced once the threshold is reached.
        """
        new_count = User.failed_login_attempts + 1
        stmt = (
            update(User)
            .where(User.id == account_id)
            .values(
                failed_login_attempts=new_count,
                lockout_until=case(
                    (new_count >= max_attempts, now + lockout),
                    else_=User.lockout_until,
                ),
                updated_at=now,
            )
            .returning(User.failed_login_attempts, User.lockout_until)
            .execution_options(synchronize_session=False)
        )
        try:
            row = self.session.execute(stmt).one()
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InfrastructureError(f"failed to record login failure for user {account_id}") from exc
        return row[0], row[1]

    def reset_failures(self, account_id: int, now: Optional[datetime] = None) -> None:
        values = {"failed_login_attempts": 0, "lockout_until": None}
        if now is not None:
            values["updated_at"] = now
        stmt = (
            update(User)
            .where(User.id == account_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InfrastructureError(f"failed to reset login failures for user {account_id}") from exc

    def claim_totp_step(self, account_id: int, step: int) -> bool:
        """
        Record ``step`` as the last accepted TOTP step. False when the account
        already accepted this step or a later one.
        """
        stmt = (
            update(User)
            .where(User.id == account_id)
            .where(or_(User.last_totp_step.is_(None), User.last_totp_step < step))
            .values(last_totp_step=step)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InfrastructureError(f"failed to record TOTP step for user {account_id}") from exc
        return result.rowcount == 1

    def _fetch_one(self, stmt) -> Optional[AccountRecord]:
        try:
            user = self.session.execute(
                stmt.execution_options(populate_existing=True)
            ).scalars().first()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise InfrastructureError("account lookup failed") from exc
        return _to_record(user) if user else None
