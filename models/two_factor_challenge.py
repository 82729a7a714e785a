from utils.clock import utcnow
from models.db import db


class TwoFactorChallenge(db.Model):
    __tablename__ = "two_factor_challenges"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    surface = db.Column(db.String(32), nullable=False)

    # sha256 of the raw token handed to the client
    token_hash = db.Column(db.String(128), unique=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    consumed_at = db.Column(db.DateTime, nullable=True)

    attempts = db.Column(db.Integer, default=0, nullable=False)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
