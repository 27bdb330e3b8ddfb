# Overview: Request authentication and role decorators for API routes.

from functools import wraps

from flask import g, request

from .models.auth import ROLE_ADMIN
from .responses import fail
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user")


def _bearer_context():
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return session_service.validate_session(auth_header.split(" ", 1)[1])


def optional_auth(f):
    """Like require_auth, but anonymous requests go through without g.current_user."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        context = _bearer_context()
        if context:
            g.current_user, g.session = context
        return f(*args, **kwargs)

    return decorated_function


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session: The SessionToken row backing the request

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account not ACTIVE
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return fail("Authentication required", 401)

        token = auth_header.split(" ", 1)[1]
        context = session_service.validate_session(token)

        if not context:
            return fail("Invalid or expired token", 401)

        g.current_user, g.session = context
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require one of the given roles. Use below @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return fail("Authentication required", 401)

            if g.current_user.role not in roles:
                return fail("Access denied", 403)

            return f(*args, **kwargs)

        return decorated_function
    return decorator


require_admin = require_role(ROLE_ADMIN)


def is_admin() -> bool:
    return _is_authenticated() and g.current_user.is_admin


def can_access_member(member_id: int) -> bool:
    """Admins see every member; a member only their own profile."""
    if is_admin():
        return True
    member = g.current_user.member if _is_authenticated() else None
    return member is not None and member.id == member_id
