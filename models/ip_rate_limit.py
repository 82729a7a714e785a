from utils.clock import utcnow
from models.db import db

class IpRateLimit(db.Model):
    __tablename__ = "ip_rate_limits"
    __table_args__ = (db.UniqueConstraint("scope", "ip", name="uq_ip_rate_limits_scope_ip"),)

    id = db.Column(db.Integer, primary_key=True)
    scope = db.Column(db.String(32), nullable=False)  # surface name, e.g. "web" or "admin"
    ip = db.Column(db.String(64), nullable=False, index=True)

    window_start = db.Column(db.DateTime, nullable=False)
    count = db.Column(db.Integer, default=0, nullable=False)

    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
