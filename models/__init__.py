from .db import db
from .user import User, Role
from .audit_log import AuditLog, AdminAuditLog
from .two_factor_challenge import TwoFactorChallenge
from .ip_rate_limit import IpRateLimit
