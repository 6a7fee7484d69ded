"""
Reports Blueprint — role dashboards.

  GET /api/v1/team-lead/reports          — Team Lead progress (?developer_id=&project_id=)
  GET /api/v1/developer/my-projects      — Developer's project with modules
  GET /api/v1/dashboard/summary          — summary for the caller's role
"""

from flask import Blueprint, g, jsonify, request

from projecthub.middleware.role_required import login_required, role_required
from projecthub.models.enums import Role
from projecthub.services import report_service

report_bp = Blueprint("report_bp", __name__, url_prefix="/api/v1")


@report_bp.route("/team-lead/reports", methods=["GET"])
@role_required(Role.TEAM_LEAD)
def team_lead_reports():
    report = report_service.team_lead_report(
        g.jwt_user_id,
        developer_id=request.args.get("developer_id", type=int),
        project_id=request.args.get("project_id", type=int),
    )
    return jsonify(report), 200


@report_bp.route("/developer/my-projects", methods=["GET"])
@role_required(Role.DEVELOPER)
def developer_projects():
    return jsonify({"projects": report_service.developer_projects(g.jwt_email)}), 200


@report_bp.route("/dashboard/summary", methods=["GET"])
@login_required
def dashboard_summary():
    summary = report_service.dashboard_summary(
        g.jwt_role, user_id=g.jwt_user_id, email=g.jwt_email
    )
    return jsonify(summary), 200
