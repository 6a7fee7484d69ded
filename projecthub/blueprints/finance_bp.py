"""
Finance Blueprint — payments for completed modules (Finance role only).

  GET   /api/v1/finance?status=Pending   — payments by status
  GET   /api/v1/finance/report           — all payments + summary
  PATCH /api/v1/finance/<id>             — Paid | Rejected
"""

from flask import Blueprint, g, jsonify, request

from projecthub.blueprints import json_body
from projecthub.middleware.role_required import role_required
from projecthub.models.enums import Role
from projecthub.services import finance_service

finance_bp = Blueprint("finance_bp", __name__, url_prefix="/api/v1/finance")


@finance_bp.route("", methods=["GET"])
@role_required(Role.FINANCE)
def list_payments():
    return jsonify({"payments": finance_service.list_payments(request.args.get("status"))}), 200


@finance_bp.route("/report", methods=["GET"])
@role_required(Role.FINANCE)
def financial_report():
    return jsonify(finance_service.financial_report()), 200


@finance_bp.route("/<int:finance_id>", methods=["PATCH"])
@role_required(Role.FINANCE)
def process_payment(finance_id):
    finance = finance_service.process_payment(
        finance_id, json_body(), processed_by=g.jwt_email
    )
    return jsonify({
        "message": f"Payment {finance.payment_status.lower()} successfully.",
        "payment": finance.to_dict(),
    }), 200
