"""
Projects Blueprint — requests, CEO decisions, appeals.

  POST   /api/v1/projects                       — CEO/Team Lead: one project per developer
  GET    /api/v1/projects                       — all projects (?status=, limit/offset)
  GET    /api/v1/projects/<id>                  — one project with its modules
  PUT    /api/v1/projects/<id>                  — edit while Pending/Rejected
  DELETE /api/v1/projects/<id>                  — CEO any, Team Lead own
  GET    /api/v1/projects/stats                 — status counts + top progress
  GET    /api/v1/projects/pending               — CEO decision queue
  GET    /api/v1/projects/approved              — approved, with developers
  GET    /api/v1/projects/mine                  — created by the caller
  POST   /api/v1/projects/<id>/decision         — CEO: Approved | Rejected
  GET    /api/v1/projects/<id>/appeal           — creator: view rejected project
  POST   /api/v1/projects/<id>/appeal           — creator: resubmit
  POST   /api/v1/projects/<id>/complete         — Approved → Completed
"""

from flask import Blueprint, g, jsonify, request

from projecthub.blueprints import json_body, paginate_query
from projecthub.middleware.role_required import login_required, role_required
from projecthub.models.enums import Role
from projecthub.services import project_service

project_bp = Blueprint("project_bp", __name__, url_prefix="/api/v1/projects")

_REQUESTERS = (Role.CEO, Role.TEAM_LEAD)


# ═══════════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════════
@project_bp.route("", methods=["POST"])
@role_required(*_REQUESTERS)
def create_projects():
    projects = project_service.create_projects(json_body(), actor_id=g.jwt_user_id)
    return jsonify({"projects": [p.to_dict() for p in projects]}), 201


@project_bp.route("", methods=["GET"])
@login_required
def list_projects():
    items, total = paginate_query(project_service.project_query(request.args.get("status")))
    return jsonify({"projects": [p.to_dict() for p in items], "total": total}), 200


@project_bp.route("/<int:project_id>", methods=["GET"])
@login_required
def get_project(project_id):
    project = project_service.get_project(project_id)
    return jsonify({"project": project.to_dict(include_modules=True)}), 200


@project_bp.route("/<int:project_id>", methods=["PUT"])
@role_required(*_REQUESTERS)
def update_project(project_id):
    project = project_service.update_project(project_id, json_body())
    return jsonify({"project": project.to_dict()}), 200


@project_bp.route("/<int:project_id>", methods=["DELETE"])
@role_required(*_REQUESTERS)
def delete_project(project_id):
    snapshot = project_service.delete_project(
        project_id, actor_id=g.jwt_user_id, actor_role=g.jwt_role
    )
    return jsonify({"message": "Project deleted", "project": snapshot}), 200


# ═══════════════════════════════════════════════════════════════
# Listings
# ═══════════════════════════════════════════════════════════════
@project_bp.route("/stats", methods=["GET"])
@login_required
def project_stats():
    return jsonify(project_service.project_stats()), 200


@project_bp.route("/pending", methods=["GET"])
@role_required(Role.CEO)
def pending_projects():
    return jsonify({"projects": [p.to_dict() for p in project_service.list_pending()]}), 200


@project_bp.route("/approved", methods=["GET"])
@login_required
def approved_projects():
    return jsonify({"projects": project_service.list_approved()}), 200


@project_bp.route("/mine", methods=["GET"])
@role_required(*_REQUESTERS)
def my_projects():
    projects = project_service.list_created_by(g.jwt_user_id)
    return jsonify({"projects": [p.to_dict() for p in projects]}), 200


# ═══════════════════════════════════════════════════════════════
# Workflow
# ═══════════════════════════════════════════════════════════════
@project_bp.route("/<int:project_id>/decision", methods=["POST"])
@role_required(Role.CEO)
def decide_project(project_id):
    project = project_service.decide_project(project_id, json_body())
    return jsonify({"project": project.to_dict()}), 200


@project_bp.route("/<int:project_id>/appeal", methods=["GET"])
@role_required(Role.TEAM_LEAD)
def get_appeal(project_id):
    project = project_service.get_appeal_project(project_id, actor_id=g.jwt_user_id)
    return jsonify({"project": project.to_dict()}), 200


@project_bp.route("/<int:project_id>/appeal", methods=["POST"])
@role_required(Role.TEAM_LEAD)
def appeal_project(project_id):
    project = project_service.appeal_project(project_id, json_body(), actor_id=g.jwt_user_id)
    return jsonify({
        "message": "Project appeal submitted successfully. "
                   "The project has been resubmitted for review.",
        "project": project.to_dict(),
    }), 200


@project_bp.route("/<int:project_id>/complete", methods=["POST"])
@role_required(*_REQUESTERS)
def complete_project(project_id):
    project = project_service.complete_project(
        project_id, actor_id=g.jwt_user_id, actor_role=g.jwt_role
    )
    return jsonify({"project": project.to_dict()}), 200
