from functools import wraps
from flask import jsonify

from models.user import Role
from utils.auth_context import load_current_user


def _role_name(user) -> str:
    role = getattr(user, "role", None)
    return role.value if isinstance(role, Role) else role


def require_roles(surface: str, *role_names: str):
    """
    Usage: @require_roles("admin", "SUPERADMIN")
    Loads the user signed in on ``surface``; SUPERADMIN passes every check.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = load_current_user(surface)
            if user is None:
                return jsonify(error="Authentication required"), 401

            role = _role_name(user)
            if role != Role.SUPERADMIN.value and role not in role_names:
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
