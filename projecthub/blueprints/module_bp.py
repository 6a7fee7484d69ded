"""
Modules Blueprint — developer deliverables.

  POST   /api/v1/modules                 — Developer creates a module (Pending)
  GET    /api/v1/modules?project_id=     — modules of a project
  PUT    /api/v1/modules/<id>            — edit details, optional ``status``
  POST   /api/v1/modules/<id>/start      — Pending → Started
  POST   /api/v1/modules/<id>/complete   — Started → Complete (commit_link required)
  DELETE /api/v1/modules/<id>
"""

from flask import Blueprint, g, jsonify, request

from projecthub.blueprints import json_body
from projecthub.middleware.role_required import login_required, role_required
from projecthub.models.enums import Role
from projecthub.services import module_service

module_bp = Blueprint("module_bp", __name__, url_prefix="/api/v1/modules")


@module_bp.route("", methods=["POST"])
@role_required(Role.DEVELOPER)
def create_module():
    module = module_service.create_module(
        json_body(), actor_email=g.jwt_email
    )
    return jsonify({"module": module.to_dict()}), 201


@module_bp.route("", methods=["GET"])
@login_required
def list_modules():
    modules = module_service.list_modules(request.args.get("project_id", type=int))
    return jsonify({"modules": [m.to_dict() for m in modules]}), 200


@module_bp.route("/<int:module_id>", methods=["PUT"])
@role_required(Role.DEVELOPER)
def update_module(module_id):
    module = module_service.update_module(module_id, json_body())
    return jsonify({"module": module.to_dict()}), 200


@module_bp.route("/<int:module_id>/start", methods=["POST"])
@role_required(Role.DEVELOPER)
def start_module(module_id):
    return jsonify({"module": module_service.start_module(module_id).to_dict()}), 200


@module_bp.route("/<int:module_id>/complete", methods=["POST"])
@role_required(Role.DEVELOPER)
def complete_module(module_id):
    data = json_body()
    module = module_service.complete_module(module_id, data.get("commit_link"))
    return jsonify({"module": module.to_dict()}), 200


@module_bp.route("/<int:module_id>", methods=["DELETE"])
@role_required(Role.DEVELOPER)
def delete_module(module_id):
    module_service.delete_module(module_id)
    return jsonify({"message": "Module deleted successfully."}), 200
