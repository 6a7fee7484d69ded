"""
Role Decorators — route protection by the session token's role claim.

Usage:
    @project_bp.route("/projects/<int:project_id>/decision", methods=["POST"])
    @role_required(Role.CEO)
    def decide(project_id):
        ...

    @report_bp.route("/dashboard/summary", methods=["GET"])
    @login_required
    def dashboard_summary():
        ...

No session → 401, session with another role → 403.
"""

import functools
import logging

from flask import g, request

from projecthub.models.enums import Role
from projecthub.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def _unauthenticated():
    error = getattr(g, "jwt_error", None) or "Not authenticated"
    code = E.UNAUTHENTICATED if error == "Not authenticated" else E.SESSION_INVALID
    return api_error(code, error)


def login_required(f):
    """Decorator: any authenticated role."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "jwt_user_id", None) is None:
            return _unauthenticated()
        return f(*args, **kwargs)
    return decorated


def role_required(*roles: Role):
    """
    Decorator: require the session role to be one of ``roles``.

    Args:
        roles: Allowed ``Role`` members.
    """
    allowed = frozenset(Role(r) for r in roles)

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            user_id = getattr(g, "jwt_user_id", None)
            if user_id is None:
                return _unauthenticated()

            role = g.jwt_role
            if role not in allowed:
                logger.warning(
                    "User %d (%s) denied: %s %s requires %s",
                    user_id, role.value, request.method, request.path,
                    sorted(r.value for r in allowed),
                )
                return api_error(E.FORBIDDEN, "Access denied")

            return f(*args, **kwargs)
        return decorated
    return decorator
