from functools import wraps

from flask_jwt_extended import get_jwt_identity, jwt_required

from fitcoach.errors import Forbidden, Unauthenticated
from fitcoach.extensions import db
from fitcoach.models.user import User
from fitcoach.utils.capabilities import ReadCapability


def current_capability():
    """Build the caller's read capability from the verified JWT."""
    identity = get_jwt_identity()
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token identity")

    user = db.session.get(User, user_id)
    if not user:
        raise Unauthenticated("User no longer exists")
    if user.status == "suspended":
        raise Forbidden("Account is suspended")
    return ReadCapability(user.id, user.role)


def role_required(*roles):
    """
    Require a valid JWT and, when ``roles`` is given, one of those roles.
    The caller's ReadCapability is passed to the view as ``cap``.
    """
    def decorator(view_func):
        @wraps(view_func)
        @jwt_required()
        def wrapper(*args, **kwargs):
            cap = current_capability()
            if roles and cap.role not in roles:
                raise Forbidden("Unauthorized")
            kwargs["cap"] = cap
            return view_func(*args, **kwargs)
        return wrapper
    return decorator
