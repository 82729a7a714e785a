from functools import lru_cache

import bcrypt

DEFAULT_ROUNDS = 12

def hash_password(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    if not isinstance(plain_password, str) or len(plain_password) == 0:
        raise ValueError("Password must be a non-empty string")

    # bcrypt expects bytes
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")

def verify_password(plain_password: str, password_hash: str) -> bool:
    """Constant-time bcrypt check. Missing or malformed input is a mismatch."""
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8")
        )
    except ValueError:
        # malformed hash, or a password bcrypt refuses (over 72 bytes)
        return False


@lru_cache(maxsize=8)
def _decoy_hash(rounds: int) -> str:
    return hash_password("decoy-password-not-used", rounds=rounds)


def decoy_verify(plain_password: str, rounds: int = DEFAULT_ROUNDS) -> None:
    """
    Spend the same bcrypt work as a real check without touching any account.
    Used on branches that must not compare against the real hash.
    """
    verify_password(plain_password or "x", _decoy_hash(rounds))
