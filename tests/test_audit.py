"""Tests for the SQL audit sink and its bounded retry."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from models import db
from models.audit_log import AdminAuditLog, AuditLog
from security.errors import InfrastructureError
from utils.audit import LOGIN_FAILED, LOGIN_SUCCESS, AuditEvent, SqlAuditSink

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _db_error():
    return OperationalError("INSERT", {}, Exception("database is locked"))


class TestSqlAuditSink:

    def test_writes_to_surface_table(self, app):
        sink = SqlAuditSink(db.session, AdminAuditLog)

        sink.append(AuditEvent(user_id=7, action=LOGIN_SUCCESS, timestamp=NOW, ip_address="10.0.0.1"))

        rows = AdminAuditLog.query.all()
        assert len(rows) == 1
        assert rows[0].user_id == 7
        assert rows[0].action == "LOGIN_SUCCESS"
        assert rows[0].timestamp == NOW
        assert rows[0].ip == "10.0.0.1"
        assert AuditLog.query.count() == 0

    def test_user_agent_truncated(self, app):
        sink = SqlAuditSink(db.session, AuditLog)

        sink.append(AuditEvent(user_id=1, action=LOGIN_FAILED, timestamp=NOW, user_agent="x" * 400))

        assert len(AuditLog.query.one().user_agent) == 255

    def test_retries_transient_error(self, app):
        session = MagicMock()
        session.commit.side_effect = [_db_error(), None]
        sink = SqlAuditSink(session, AuditLog, attempts=3, min_wait=0, max_wait=0)

        sink.append(AuditEvent(user_id=1, action=LOGIN_FAILED, timestamp=NOW))

        assert session.commit.call_count == 2
        assert session.rollback.call_count == 1

    def test_gives_up_after_attempts(self, app):
        session = MagicMock()
        session.commit.side_effect = _db_error()
        sink = SqlAuditSink(session, AuditLog, attempts=3, min_wait=0, max_wait=0)

        with pytest.raises(InfrastructureError) as exc_info:
            sink.append(AuditEvent(user_id=1, action=LOGIN_SUCCESS, timestamp=NOW))

        assert session.commit.call_count == 3
        assert isinstance(exc_info.value.__cause__, OperationalError)
