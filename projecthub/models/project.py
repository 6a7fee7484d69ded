"""
Project & Module Models.

Project lifecycle:
    Pending  → Approved | Rejected      (CEO decision)
    Rejected → Pending                  (appeal by the creating Team Lead)
    Approved → Completed
    Completed  (terminal)

Module lifecycle:
    Pending → Started → Complete        (Complete requires a commit link)

Completing a module creates its Finance row — see models/finance.py.
"""

from datetime import datetime, timezone

from projecthub.models import db
from projecthub.models.enums import ModuleStatus, ProjectStatus
from projecthub.models.people import _in_clause

DEFAULT_CURRENCY = "UGX"

PROJECT_TRANSITIONS = {
    ProjectStatus.PENDING.value:   [ProjectStatus.APPROVED.value, ProjectStatus.REJECTED.value],
    ProjectStatus.REJECTED.value:  [ProjectStatus.PENDING.value],
    ProjectStatus.APPROVED.value:  [ProjectStatus.COMPLETED.value],
    ProjectStatus.COMPLETED.value: [],
}

MODULE_TRANSITIONS = {
    ModuleStatus.PENDING.value:  [ModuleStatus.STARTED.value],
    ModuleStatus.STARTED.value:  [ModuleStatus.COMPLETE.value],
    ModuleStatus.COMPLETE.value: [],
}

# Statuses that freeze a project's editable fields
LOCKED_PROJECT_STATUSES = frozenset({ProjectStatus.APPROVED.value, ProjectStatus.COMPLETED.value})


def validate_project_transition(old_status, new_status):
    """Return True if Project status transition is valid."""
    return new_status in PROJECT_TRANSITIONS.get(old_status, [])


def validate_module_transition(old_status, new_status):
    """Return True if Module status transition is valid."""
    return new_status in MODULE_TRANSITIONS.get(old_status, [])


# ═══════════════════════════════════════════════════════════════
# PROJECT
# ═══════════════════════════════════════════════════════════════
class Project(db.Model):
    __tablename__ = "project"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    duration = db.Column(db.String(100))
    status = db.Column(db.String(50), nullable=False, default=ProjectStatus.PENDING.value)
    review = db.Column(db.Text, default="")
    progress = db.Column(db.Integer, nullable=False, default=0)
    created_by = db.Column(
        db.Integer, db.ForeignKey("reg_users.id", ondelete="SET NULL"), nullable=True
    )
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.CheckConstraint("progress >= 0 AND progress <= 100", name="ck_project_progress"),
        db.CheckConstraint(_in_clause("status", ProjectStatus), name="ck_project_status"),
        db.Index("idx_project_status", "status"),
        db.Index("idx_project_created_by", "created_by"),
    )

    creator = db.relationship("RegisteredUser")
    modules = db.relationship(
        "Module", back_populates="project", order_by="Module.id",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    developers = db.relationship(
        "Developer", back_populates="project", order_by="Developer.id", passive_deletes=True,
    )

    @property
    def is_locked(self):
        return self.status in LOCKED_PROJECT_STATUSES

    def to_dict(self, include_modules=False):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
            "status": self.status,
            "review": self.review or "",
            "progress": self.progress,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if self.creator is not None:
            d["created_by_first_name"] = self.creator.first_name
            d["created_by_last_name"] = self.creator.last_name
            d["created_by_email"] = self.creator.email
        if include_modules:
            d["modules"] = [m.to_dict() for m in self.modules]
        return d


# ═══════════════════════════════════════════════════════════════
# MODULE
# ═══════════════════════════════════════════════════════════════
class Module(db.Model):
    __tablename__ = "module"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    start_date = db.Column(db.Date)
    end_date = db.Column(db.Date)
    cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    currency = db.Column(db.String(3), nullable=False, default=DEFAULT_CURRENCY)
    status = db.Column(db.String(50), nullable=False, default=ModuleStatus.PENDING.value)
    marked_complete_date = db.Column(db.Date)
    project_id = db.Column(
        db.Integer, db.ForeignKey("project.id", ondelete="CASCADE"), nullable=False
    )
    created_by = db.Column(
        db.Integer, db.ForeignKey("developer.id", ondelete="SET NULL"), nullable=True
    )
    notes = db.Column(db.Text)
    commit_link = db.Column(db.String(255))

    __table_args__ = (
        db.CheckConstraint(_in_clause("status", ModuleStatus), name="ck_module_status"),
        db.Index("idx_module_status", "status"),
        db.Index("idx_module_project", "project_id"),
    )

    project = db.relationship("Project", back_populates="modules")
    developer = db.relationship("Developer")
    finance = db.relationship(
        "Finance", back_populates="module", uselist=False,
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "cost": float(self.cost) if self.cost is not None else 0.0,
            "currency": self.currency,
            "status": self.status,
            "marked_complete_date": (
                self.marked_complete_date.isoformat() if self.marked_complete_date else None
            ),
            "project_id": self.project_id,
            "created_by": self.created_by,
            "notes": self.notes,
            "commit_link": self.commit_link,
        }
