"""Middleware for the already-resolved request identity."""
from functools import wraps
from flask import session, g

from tienda.exceptions import UnauthorizedError


def load_identity():
    """
    Copy the identity resolved by the auth layer into g.

    Sets g.user_id (None for guests) and g.is_admin. Nothing is
    authenticated here.
    """
    user_id = session.get('user_id')
    g.user_id = str(user_id) if user_id else None
    g.is_admin = bool(session.get('is_admin')) and g.user_id is not None


def admin_required(f):
    """Decorator: Require an administrator identity."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.get('is_admin'):
            raise UnauthorizedError('Acceso solo para administradores')
        return f(*args, **kwargs)
    return decorated_function
