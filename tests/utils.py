"""Helpers shared by the database-backed tests."""

from models import db
from models.user import User


def reload(user):
    """Re-read a user row after another session changed it."""
    db.session.expire_all()
    return db.session.get(User, user.id)
