"""
Append-only authentication audit trail.

Each surface writes into its own table (see ``security.policy``). Writes are
retried with backoff; after the last attempt the failure is raised as
``InfrastructureError`` and the caller decides whether it matters.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from tenacity import (
    RetryError,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from security.errors import InfrastructureError

logger = logging.getLogger(__name__)

LOGIN_SUCCESS = "LOGIN_SUCCESS"
LOGIN_FAILED = "LOGIN_FAILED"


@dataclass(frozen=True)
class AuditEvent:
    user_id: Optional[int]
    action: str
    timestamp: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class SqlAuditSink:
    def __init__(self, session, model, attempts: int = 3, min_wait: float = 0.05, max_wait: float = 1.0):
        self.session = session
        self.model = model
        self.attempts = max(1, attempts)
        self.min_wait = min_wait
        self.max_wait = max_wait

    def append(self, event: AuditEvent) -> None:
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.min_wait, min=self.min_wait, max=self.max_wait),
            retry=retry_if_exception_type(SQLAlchemyError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        try:
            retrying(self._write, event)
        except RetryError as exc:
            cause = exc.last_attempt.exception()
            raise InfrastructureError(
                f"audit write {event.action} for user {event.user_id} failed "
                f"after {self.attempts} attempts"
            ) from cause

    def _write(self, event: AuditEvent) -> None:
        user_agent = event.user_agent
        row = self.model(
            user_id=event.user_id,
            action=event.action,
            ip=event.ip_address,
            user_agent=user_agent[:255] if user_agent else None,
            timestamp=event.timestamp,
        )
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
