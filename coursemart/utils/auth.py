from functools import wraps

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from coursemart.errors import APIError, NotFoundError
from coursemart.extensions import db
from coursemart.models import User


def get_current_user():
    """Load the user named by the bearer token; 404 if it no longer exists."""
    user_id = get_jwt_identity()
    user = db.session.get(User, int(user_id)) if user_id is not None else None
    if not user:
        raise NotFoundError("User not found")
    return user


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            user = get_current_user()
            if user.role not in roles:
                raise APIError(
                    f"User role '{user.role}' is not authorized to access this route", 403
                )
            return fn(*args, **kwargs)
        return wrapper
    return decorator
