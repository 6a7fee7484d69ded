"""
Staff Blueprint — Team Lead and Developer directory.

  POST /api/v1/team-leads          GET /api/v1/team-leads          PUT /api/v1/team-leads/<id>
  POST /api/v1/developers          GET /api/v1/developers          PUT /api/v1/developers/<id>

Writes are Admin-only. Listings are also open to the CEO and Team Leads,
who pick developers when requesting projects.
"""

from flask import Blueprint, jsonify, request

from projecthub.blueprints import json_body
from projecthub.middleware.role_required import role_required
from projecthub.models.enums import Role
from projecthub.services import staff_service

staff_bp = Blueprint("staff_bp", __name__, url_prefix="/api/v1")

_DIRECTORY_READERS = (Role.ADMIN, Role.CEO, Role.TEAM_LEAD)


# ═══════════════════════════════════════════════════════════════
# Team Leads
# ═══════════════════════════════════════════════════════════════
@staff_bp.route("/team-leads", methods=["POST"])
@role_required(Role.ADMIN)
def create_team_lead():
    lead = staff_service.create_team_lead(json_body())
    return jsonify({"team_lead": lead.to_dict()}), 201


@staff_bp.route("/team-leads", methods=["GET"])
@role_required(*_DIRECTORY_READERS)
def list_team_leads():
    return jsonify({"team_leads": [t.to_dict() for t in staff_service.list_team_leads()]}), 200


@staff_bp.route("/team-leads/<int:team_lead_id>", methods=["PUT"])
@role_required(Role.ADMIN)
def update_team_lead(team_lead_id):
    lead = staff_service.update_team_lead(team_lead_id, json_body())
    return jsonify({"team_lead": lead.to_dict()}), 200


# ═══════════════════════════════════════════════════════════════
# Developers
# ═══════════════════════════════════════════════════════════════
@staff_bp.route("/developers", methods=["POST"])
@role_required(Role.ADMIN)
def create_developer():
    dev = staff_service.create_developer(json_body())
    return jsonify({"developer": dev.to_dict()}), 201


@staff_bp.route("/developers", methods=["GET"])
@role_required(*_DIRECTORY_READERS)
def list_developers():
    team_lead_id = request.args.get("team_lead_id", type=int)
    devs = staff_service.list_developers(team_lead_id)
    return jsonify({"developers": [d.to_dict() for d in devs]}), 200


@staff_bp.route("/developers/<int:developer_id>", methods=["PUT"])
@role_required(Role.ADMIN)
def update_developer(developer_id):
    dev = staff_service.update_developer(developer_id, json_body())
    return jsonify({"developer": dev.to_dict()}), 200
