import enum
from utils.clock import utcnow
from models.db import db


class Role(str, enum.Enum):
    SUPERADMIN = "SUPERADMIN"
    ADMIN = "ADMIN"
    MERCHANT = "MERCHANT"
    CUSTOMER = "CUSTOMER"


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    # always stored lower-cased
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=True)

    # NULL for accounts without a password credential (social sign-in only)
    password_hash = db.Column(db.String(255), nullable=True)

    role = db.Column(db.Enum(Role, name="user_role"), default=Role.CUSTOMER, nullable=False)

    # lockout bookkeeping, naive UTC
    failed_login_attempts = db.Column(db.Integer, default=0, nullable=False)
    lockout_until = db.Column(db.DateTime, nullable=True)

    is_two_factor_enabled = db.Column(db.Boolean, default=False, nullable=False)
    two_factor_secret = db.Column(db.String(64), nullable=True)
    # time step of the last TOTP code accepted; a code is only good once
    last_totp_step = db.Column(db.BigInteger, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
