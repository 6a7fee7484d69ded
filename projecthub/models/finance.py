"""
Finance Model — one payment-tracking row per completed Module.

Rows are never created by API callers. The ``set`` listener on
``Module.status`` inserts one when a module first moves to ``Complete``,
snapshotting its cost and currency. ``uq_finance_module`` backs the
existence check at the database level.

Payment lifecycle:
    Pending → Paid | Rejected     (Finance role)
"""

import logging
from datetime import date

from sqlalchemy import event
from sqlalchemy.orm import object_session

from projecthub.models import db
from projecthub.models.enums import ModuleStatus, PaymentStatus
from projecthub.models.people import _in_clause
from projecthub.models.project import DEFAULT_CURRENCY, Module

logger = logging.getLogger(__name__)

AUTO_CREATED_NOTE = "Auto-created on module completion"


class Finance(db.Model):
    __tablename__ = "finance"

    id = db.Column(db.Integer, primary_key=True)
    module_id = db.Column(
        db.Integer, db.ForeignKey("module.id", ondelete="CASCADE"), nullable=False
    )
    processed_by = db.Column(db.String(255))
    processed_date = db.Column(db.Date, default=date.today)
    payment_status = db.Column(db.String(50), nullable=False, default=PaymentStatus.PENDING.value)
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)       # actually paid
    module_cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)  # snapshot of module.cost
    currency = db.Column(db.String(3), nullable=False, default=DEFAULT_CURRENCY)
    notes = db.Column(db.Text)

    __table_args__ = (
        db.UniqueConstraint("module_id", name="uq_finance_module"),
        db.CheckConstraint(_in_clause("payment_status", PaymentStatus), name="ck_finance_status"),
        db.Index("idx_finance_status", "payment_status"),
        db.Index("idx_finance_module", "module_id"),
    )

    module = db.relationship("Module", back_populates="finance")

    def to_dict(self):
        return {
            "id": self.id,
            "module_id": self.module_id,
            "processed_by": self.processed_by,
            "processed_date": self.processed_date.isoformat() if self.processed_date else None,
            "payment_status": self.payment_status,
            "amount": float(self.amount) if self.amount is not None else 0.0,
            "module_cost": float(self.module_cost) if self.module_cost is not None else 0.0,
            "currency": self.currency,
            "notes": self.notes,
        }


@event.listens_for(Module.status, "set", active_history=True)
def _create_finance_on_completion(target, value, oldvalue, initiator):
    """Insert the module's Finance row when status changes to Complete."""
    if value != ModuleStatus.COMPLETE.value or oldvalue == ModuleStatus.COMPLETE.value:
        return

    session = object_session(target)
    if session is not None:
        with session.no_autoflush:
            existing = target.finance
    else:
        existing = target.finance
    if existing is not None:
        return

    target.finance = Finance(
        module_cost=target.cost or 0,
        currency=target.currency or DEFAULT_CURRENCY,
        payment_status=PaymentStatus.PENDING.value,
        notes=AUTO_CREATED_NOTE,
    )
    logger.debug("Finance row queued for module id=%s", target.id)
