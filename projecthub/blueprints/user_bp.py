"""
Users Blueprint — registered users and sign-up.

  POST /api/v1/users                 — Admin registers a user (no password)
  GET  /api/v1/users                 — Admin lists users (?role=)
  GET  /api/v1/users/lookup?email=   — Public lookup for the sign-up form
  PUT  /api/v1/users/signup          — Public: set password, finish sign-up
"""

from flask import Blueprint, jsonify, request

from projecthub.blueprints import json_body
from projecthub.middleware.role_required import role_required
from projecthub.models.enums import Role
from projecthub.services import user_service

user_bp = Blueprint("user_bp", __name__, url_prefix="/api/v1/users")


@user_bp.route("", methods=["POST"])
@role_required(Role.ADMIN)
def register_user():
    user = user_service.register_user(json_body())
    return jsonify({"user": user.to_dict()}), 201


@user_bp.route("", methods=["GET"])
@role_required(Role.ADMIN)
def list_users():
    users = user_service.list_users(request.args.get("role"))
    return jsonify({"users": [u.to_dict() for u in users], "total": len(users)}), 200


@user_bp.route("/lookup", methods=["GET"])
def lookup_user():
    return jsonify({"user": user_service.lookup_user(request.args.get("email", "").strip())}), 200


@user_bp.route("/signup", methods=["PUT"])
def complete_signup():
    user = user_service.complete_signup(json_body())
    return jsonify({"message": "Sign-up complete. You can now log in.", "user": user.to_dict()}), 200
