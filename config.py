import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to this file as storefront_auth.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "storefront_auth.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Account lockout
    MAX_LOGIN_ATTEMPTS = 5
    LOCKOUT_MINUTES = 30

    # False renders a locked account with the generic "Invalid credentials"
    DISCLOSE_LOCKOUT = os.getenv("DISCLOSE_LOCKOUT", "false").lower() == "true"

    # Password hashing cost (also used for the decoy comparison)
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Input limits
    EMAIL_MAX_LEN = 255
    PASSWORD_MAX_LEN = 72   # bcrypt limit (also enforced in bytes)
    PASSWORD_MIN_LEN = 12  # account creation only

    # Two-factor (TOTP)
    TOTP_ISSUER = os.getenv("TOTP_ISSUER", "Storefront")
    TOTP_VALID_WINDOW = 1
    TWO_FACTOR_CHALLENGE_TTL_SECONDS = int(os.getenv("TWO_FACTOR_CHALLENGE_TTL_SECONDS", "300"))  # 5 minutes
    TWO_FACTOR_MAX_ATTEMPTS = int(os.getenv("TWO_FACTOR_MAX_ATTEMPTS", "5"))

    # Audit writes
    AUDIT_WRITE_ATTEMPTS = int(os.getenv("AUDIT_WRITE_ATTEMPTS", "3"))

    # Simple IP rate limit for login endpoints (per surface)
    LOGIN_RATE_WINDOW_SECONDS = 60      # window size
    LOGIN_RATE_MAX_REQUESTS = 10        # max login requests per IP per window

    # Reverse proxies in front of the app; X-Forwarded-For is ignored when 0
    TRUSTED_PROXY_HOPS = int(os.getenv("TRUSTED_PROXY_HOPS", "0"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = "WARNING"
