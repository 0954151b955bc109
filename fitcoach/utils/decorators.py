from functools import wraps

from flask_jwt_extended import get_jwt_identity, jwt_required

from fitcoach.errors import AuthError, ForbiddenError
from fitcoach.extensions import db
from fitcoach.models import User


def role_required(*roles):
    """
    Require a valid JWT and, when roles are given, one of those roles.
    The resolved user is passed to the view as the `current_user` keyword.
    """
    def decorator(view_func):
        @wraps(view_func)
        @jwt_required()
        def wrapper(*args, **kwargs):
            user = db.session.get(User, int(get_jwt_identity()))
            if user is None or not user.is_active:
                raise AuthError("User not found or inactive", code="UNAUTHORIZED")
            if roles and user.role not in roles:
                raise ForbiddenError(f"This action requires one of the roles: {', '.join(roles)}")

            kwargs["current_user"] = user
            return view_func(*args, **kwargs)
        return wrapper
    return decorator
