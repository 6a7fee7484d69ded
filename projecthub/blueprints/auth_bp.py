"""
Auth Blueprint — session cookie login.

  POST /api/v1/auth/login    — Email + password → httpOnly ``authToken`` cookie
  POST /api/v1/auth/logout   — Clear the cookie
  GET  /api/v1/auth/me       — Claims of the current session
"""

from flask import Blueprint, current_app, g, jsonify

from projecthub.blueprints import json_body
from projecthub.middleware.role_required import login_required
from projecthub.services.jwt_service import claims_to_user, generate_access_token
from projecthub.services.user_service import authenticate
from projecthub.utils.helpers import require_text

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")


def _cookie_name():
    return current_app.config.get("AUTH_COOKIE_NAME", "authToken")


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate and set the session cookie.

    Body: { "email": "...", "password": "..." }
    The token is also returned as ``access_token`` for Bearer clients.
    """
    data = json_body()
    require_text(data, "email", "password")
    user = authenticate((data.get("email") or "").strip(), data.get("password") or "")

    token = generate_access_token(user)
    response = jsonify({
        "success": True,
        "user": user.to_dict(),
        "access_token": token,
        "expires_in": current_app.config["JWT_ACCESS_EXPIRES"],
    })
    response.set_cookie(
        _cookie_name(),
        token,
        max_age=current_app.config["JWT_ACCESS_EXPIRES"],
        httponly=True,
        secure=current_app.config.get("AUTH_COOKIE_SECURE", True),
        samesite="Strict",
        path="/",
    )
    return response, 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/logout
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/logout", methods=["POST"])
def logout():
    response = jsonify({"message": "Logged out"})
    response.delete_cookie(
        _cookie_name(),
        path="/",
        httponly=True,
        secure=current_app.config.get("AUTH_COOKIE_SECURE", True),
        samesite="Strict",
    )
    return response, 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify({"user": claims_to_user(g.jwt_claims)}), 200
