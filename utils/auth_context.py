from functools import wraps
from flask import g, jsonify, session

from models import db
from models.user import User


def _session_key(surface: str) -> str:
    return f"{surface}_user_id"


def sign_in(surface: str, account) -> None:
    """Bind an authenticated account to this surface's slot in the signed session cookie."""
    session[_session_key(surface)] = account.id
    session.permanent = True


def sign_out(surface: str) -> None:
    session.pop(_session_key(surface), None)


def load_current_user(surface: str):
    user_id = session.get(_session_key(surface))
    g.surface = surface
    g.user = db.session.get(User, user_id) if user_id is not None else None
    if user_id is not None and g.user is None:
        # account was removed since sign-in
        sign_out(surface)
    return g.user


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
