import re

# local@domain.tld, no whitespace, single "@"
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# bcrypt refuses anything longer
BCRYPT_MAX_BYTES = 72


def normalize_email(value) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def is_valid_email(email: str, max_len: int = 255) -> bool:
    return isinstance(email, str) and 0 < len(email) <= max_len and _EMAIL_RE.match(email) is not None


def is_valid_password(password, max_len: int = BCRYPT_MAX_BYTES) -> bool:
    if not isinstance(password, str) or not 0 < len(password) <= max_len:
        return False
    return len(password.encode("utf-8")) <= BCRYPT_MAX_BYTES
