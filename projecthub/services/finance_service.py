"""
Finance service — payment listings, report, processing.

Finance rows are created only by module completion. Processing sets the
outcome and is deliberately unguarded: processing an already processed
row overwrites it.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from sqlalchemy import case, func

from projecthub.core.exceptions import NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.enums import PaymentStatus
from projecthub.models.finance import Finance
from projecthub.models.people import Developer
from projecthub.models.project import Module, Project
from projecthub.utils.helpers import require_fields

logger = logging.getLogger(__name__)

PROCESSABLE = (PaymentStatus.PAID.value, PaymentStatus.REJECTED.value)


def _payments_query():
    return (
        db.session.query(Finance, Module, Project, Developer)
        .join(Module, Finance.module_id == Module.id)
        .join(Project, Module.project_id == Project.id)
        .outerjoin(Developer, Module.created_by == Developer.id)
        .order_by(Finance.processed_date.desc(), Finance.id.desc())
    )


def _payment_row(finance, module, project, developer):
    d = finance.to_dict()
    d.update({
        "module_name": module.name,
        "module_description": module.description,
        "start_date": module.start_date.isoformat() if module.start_date else None,
        "end_date": module.end_date.isoformat() if module.end_date else None,
        "marked_complete_date": (
            module.marked_complete_date.isoformat() if module.marked_complete_date else None
        ),
        "commit_link": module.commit_link,
        "project_id": project.id,
        "project_name": project.name,
        "developer_name": developer.full_name if developer else None,
        "developer_email": developer.email if developer else None,
    })
    return d


def list_payments(status: str | None = None) -> list[dict]:
    """Payments with the given status (default Pending) and their context."""
    status = status or PaymentStatus.PENDING.value
    if status not in {s.value for s in PaymentStatus}:
        raise ValidationError(f"Unknown payment status: {status}")
    rows = _payments_query().filter(Finance.payment_status == status).all()
    return [_payment_row(*row) for row in rows]


def payment_summary() -> dict:
    paid = PaymentStatus.PAID.value
    pending = PaymentStatus.PENDING.value
    rejected = PaymentStatus.REJECTED.value
    row = db.session.query(
        func.count(Finance.id),
        func.count(case((Finance.payment_status == paid, 1))),
        func.count(case((Finance.payment_status == pending, 1))),
        func.count(case((Finance.payment_status == rejected, 1))),
        func.coalesce(func.sum(case((Finance.payment_status == paid, Finance.amount), else_=0)), 0),
        func.coalesce(
            func.sum(case((Finance.payment_status == pending, Finance.module_cost), else_=0)), 0
        ),
        func.coalesce(func.sum(Finance.module_cost), 0),
    ).one()
    return {
        "total_payments": row[0],
        "paid_count": row[1],
        "pending_count": row[2],
        "rejected_count": row[3],
        "total_paid_amount": float(row[4]),
        "total_pending_amount": float(row[5]),
        "total_module_costs": float(row[6]),
    }


def financial_report() -> dict:
    rows = _payments_query().all()
    return {
        "payments": [_payment_row(*row) for row in rows],
        "summary": payment_summary(),
    }


def process_payment(finance_id: int, data: dict, *, processed_by: str) -> Finance:
    """Record a Paid/Rejected outcome; repeats overwrite the previous one."""
    require_fields(data, "payment_status")
    status = data["payment_status"]
    if status not in PROCESSABLE:
        raise ValidationError('payment_status must be either "Paid" or "Rejected".')

    try:
        amount = Decimal(str(data.get("amount") or 0))
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number", details={"amount": data.get("amount")})
    if not amount.is_finite() or amount < 0:
        raise ValidationError("amount must be zero or positive")

    finance = db.session.get(Finance, finance_id)
    if finance is None:
        raise NotFoundError("Payment record", message="Payment record not found.")

    previous = finance.payment_status
    finance.payment_status = status
    finance.amount = amount.quantize(Decimal("0.01"))
    finance.processed_by = processed_by
    finance.processed_date = date.today()
    finance.notes = data.get("notes") or ""
    db.session.commit()

    logger.info("Finance %d: %s → %s by %s", finance_id, previous, status, processed_by)
    return finance
