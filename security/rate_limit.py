import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.ip_rate_limit import IpRateLimit
from security.errors import InfrastructureError
from utils.clock import utcnow

logger = logging.getLogger(__name__)


def check_and_increment_login_rate(scope: str, ip: str, now=None, _retry: bool = True) -> tuple[bool, int]:
    """
    Returns (allowed, retry_after_seconds).
    Simple fixed window per (scope, IP); each surface has its own budget.
    """
    ip = ip or "unknown"
    now = now or utcnow()

    window_seconds = current_app.config.get("LOGIN_RATE_WINDOW_SECONDS", 60)
    max_requests = current_app.config.get("LOGIN_RATE_MAX_REQUESTS", 10)

    row = IpRateLimit.query.filter_by(scope=scope, ip=ip).first()
    if not row:
        row = IpRateLimit(scope=scope, ip=ip, window_start=now, count=0)
        db.session.add(row)

    window_end = row.window_start + timedelta(seconds=window_seconds)

    # Reset window if expired
    if now >= window_end:
        row.window_start = now
        row.count = 0
        window_end = row.window_start + timedelta(seconds=window_seconds)

    row.count += 1
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        if not _retry:
            raise InfrastructureError(f"could not update login rate for {scope}/{ip}") from exc
        # another request created the row first; count against that one
        return check_and_increment_login_rate(scope, ip, now, _retry=False)

    if row.count > max_requests:
        retry_after = int((window_end - now).total_seconds())
        logger.warning("[%s] login rate limit hit for %s", scope, ip)
        return False, max(retry_after, 1)

    return True, 0
