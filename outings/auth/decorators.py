"""Decorators for API authentication."""

from functools import wraps

from flask import g

from outings.errors import AuthenticationError


def login_required(f=None):
    """Reject the request with a 401 if no verified user is attached.

    Usage:
    @login_required
    def protected_view():
        ...
    """

    def decorator(func):
        @wraps(func)
        def decorated_function(*args, **kwargs):
            if g.get("user") is None:
                raise AuthenticationError("Not authorized, no valid token.")
            return func(*args, **kwargs)

        return decorated_function

    if f:
        return decorator(f)
    return decorator
