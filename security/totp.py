import hmac
import time
from typing import Optional

import pyotp


def generate_secret() -> str:
    return pyotp.random_base32()


def provisioning_uri(secret: str, email: str, issuer: str) -> str:
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=issuer)


def matching_step(secret, code, valid_window: int = 1, for_time: Optional[float] = None) -> Optional[int]:
    """
    Return the time step (``unix_time // 30``) that ``code`` was generated for,
    searching ``valid_window`` steps either side of ``for_time``; None when it
    matches none of them.

    Callers remember the last accepted step per account so a code cannot be
    used twice.
    """
    if not secret or not isinstance(code, str):
        return None
    code = code.strip().replace(" ", "")
    if not code.isdigit():
        return None

    totp = pyotp.TOTP(secret)
    if len(code) != totp.digits:
        return None
    current = int((time.time() if for_time is None else for_time) // totp.interval)
    try:
        for step in range(current - valid_window, current + valid_window + 1):
            if hmac.compare_digest(totp.generate_otp(step), code):
                return step
    except (ValueError, TypeError):
        # secret is not valid base32
        return None
    return None


def verify_code(secret, code, valid_window: int = 1) -> bool:
    """
    Check a 6-digit time-based code against ``secret``.
    Blank or malformed input never raises; it just doesn't match.
    """
    return matching_step(secret, code, valid_window) is not None
