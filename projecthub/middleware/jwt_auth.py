"""
JWT Auth Middleware — reads the session token, sets g.jwt_*.

Token sources, in order:
  1. httpOnly cookie ``authToken`` (set by POST /auth/login)
  2. Authorization: Bearer <token>

The hook never rejects a request itself. It records the caller identity
(or the reason there is none in ``g.jwt_error``) and the route decorators
in ``middleware.role_required`` decide.
"""

import jwt as pyjwt
from flask import current_app, g, request

from projecthub.models.enums import Role
from projecthub.services.jwt_service import decode_access_token

NOT_AUTHENTICATED = "Not authenticated"
SESSION_INVALID = "Session expired or invalid"

# Paths that skip JWT parsing entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/health",
)


def _read_token():
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "authToken")
    token = request.cookies.get(cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.jwt_user_id = None
        g.jwt_role = None
        g.jwt_email = None
        g.jwt_claims = None
        g.jwt_error = NOT_AUTHENTICATED

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        token = _read_token()
        if not token:
            return

        try:
            payload = decode_access_token(token)
            user_id = int(payload["sub"])
        except (pyjwt.InvalidTokenError, KeyError, TypeError, ValueError):
            # ExpiredSignatureError is an InvalidTokenError
            g.jwt_error = SESSION_INVALID
            return

        role = Role.parse(payload.get("role"))
        if role is None:
            g.jwt_error = SESSION_INVALID
            return

        g.jwt_user_id = user_id
        g.jwt_role = role
        g.jwt_email = payload.get("email")
        g.jwt_claims = payload
        g.jwt_error = None
