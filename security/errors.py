"""
Error taxonomy for the login surfaces.

``AuthError`` subclasses are rendered by the app-level error handler as
``{"error": public_message, ...extra}`` with their status code. Messages are
deliberately coarse: not-found, wrong password and (by default) locked all
share one text so responses cannot be used to enumerate accounts.
"""


class AuthError(Exception):
    status_code = 400
    public_message = "Authentication error"

    def __init__(self, message=None, **extra):
        super().__init__(message or self.public_message)
        self.public_message = message or self.public_message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"error": self.public_message, **self.extra}


class ValidationError(AuthError):
    status_code = 400
    public_message = "Invalid fields"


class AuthenticationFailure(AuthError):
    status_code = 401
    public_message = "Invalid credentials"


class AccountLockedError(AuthenticationFailure):
    """Only raised when lockout disclosure is switched on."""
    status_code = 429
    public_message = "Account locked. Try again later."


class TwoFactorFailure(AuthError):
    status_code = 401
    public_message = "Invalid 2FA code"


class RoleRejected(AuthError):
    status_code = 403
    public_message = "Unauthorized role"


class RateLimited(AuthError):
    status_code = 429
    public_message = "Too many requests. Please try again later."


class InfrastructureError(Exception):
    """A store or audit write failed. Never reaches HTTP callers from the login path."""
