from utils.clock import utcnow
from models.db import db


class _AuditColumns:
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)
    action = db.Column(db.String(80), nullable=False, index=True)  # LOGIN_SUCCESS, LOGIN_FAILED

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)


class AuditLog(_AuditColumns, db.Model):
    """Authentication events from the customer storefront."""
    __tablename__ = "audit_logs"


class AdminAuditLog(_AuditColumns, db.Model):
    """Authentication events from the admin / merchant back office."""
    __tablename__ = "admin_audit_logs"
