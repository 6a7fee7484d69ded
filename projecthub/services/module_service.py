"""
Module service — a developer's deliverables inside a project.

    Pending → Started → Complete

Completing needs a commit link and stamps the completion date; the
``Module.status`` listener in models/finance.py adds the Finance row.
Completing an already Complete module is accepted as a no-op transition.
Every status change recomputes the parent project's progress; a Completed
project refuses new or deleted modules (409) and keeps its progress at 100.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

from projecthub.core.exceptions import NotFoundError, StateConflictError, ValidationError
from projecthub.models import db
from projecthub.models.enums import ModuleStatus, ProjectStatus
from projecthub.models.people import Developer
from projecthub.models.project import Module, Project, validate_module_transition
from projecthub.utils.helpers import parse_date_input, require_fields, require_text

logger = logging.getLogger(__name__)

COMMIT_LINK_REQUIRED = "A commit link is required to mark a module as complete."
PROJECT_CLOSED = "Modules of a completed project cannot be added or removed."

DETAIL_FIELDS = ("name", "description", "notes")


def _parse_cost(value):
    try:
        cost = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("cost must be a number", details={"cost": value})
    if not cost.is_finite() or cost < 0:
        raise ValidationError("cost must be zero or positive", details={"cost": value})
    return cost.quantize(Decimal("0.01"))


def _parse_currency(value):
    currency = str(value or "").strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValidationError("currency must be a 3-letter code", details={"currency": value})
    return currency


def _check_dates(start, end):
    if start and end and end < start:
        raise ValidationError("end_date cannot be before start_date")


def _ensure_open(project: Project, action: str) -> None:
    if project.status == ProjectStatus.COMPLETED.value:
        raise StateConflictError("project", project.status, action, message=PROJECT_CLOSED)


def _load(module_id: int, for_update=False) -> Module:
    q = Module.query.filter(Module.id == module_id)
    if for_update:
        q = q.with_for_update()
    module = q.first()
    if module is None:
        raise NotFoundError("Module", module_id, message="Module not found.")
    return module


def recompute_project_progress(project: Project) -> int:
    """progress = round(completed / total * 100); 0 for a project with no modules.

    A Completed project keeps the 100 it was closed with.
    """
    if project.status == ProjectStatus.COMPLETED.value:
        return project.progress
    statuses = [s for (s,) in db.session.query(Module.status).filter(Module.project_id == project.id)]
    total = len(statuses)
    done = sum(1 for s in statuses if s == ModuleStatus.COMPLETE.value)
    project.progress = round(done / total * 100) if total else 0
    return project.progress


# ═══════════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════════
def create_module(data: dict, *, actor_email: str | None = None) -> Module:
    require_fields(
        data, "name", "description", "start_date", "end_date", "cost", "currency", "project_id",
    )
    require_text(data, "name", "description", "notes")
    try:
        project = db.session.get(Project, int(data["project_id"]))
    except (TypeError, ValueError):
        project = None
    if project is None:
        raise ValidationError(
            "Project does not exist.", details={"project_id": data["project_id"]}
        )
    _ensure_open(project, "add module")

    start = parse_date_input(data["start_date"], "start_date")
    end = parse_date_input(data["end_date"], "end_date")
    _check_dates(start, end)

    developer = Developer.query.filter(Developer.email == actor_email).first() if actor_email else None

    module = Module(
        name=data["name"].strip(),
        description=data["description"],
        start_date=start,
        end_date=end,
        cost=_parse_cost(data["cost"]),
        currency=_parse_currency(data["currency"]),
        status=ModuleStatus.PENDING.value,
        project=project,
        developer=developer,
        notes=data.get("notes"),
    )
    db.session.add(module)
    db.session.flush()
    recompute_project_progress(project)
    db.session.commit()
    logger.info("Module %d created in project %d", module.id, project.id)
    return module


def list_modules(project_id: int | None = None) -> list[Module]:
    q = Module.query
    if project_id is not None:
        q = q.filter(Module.project_id == project_id)
    return q.order_by(Module.id).all()


def update_module(module_id: int, data: dict) -> Module:
    """
    Edit module details. A ``status`` in the body is applied through
    ``transition_module`` after the detail changes.
    """
    require_text(data, *DETAIL_FIELDS, "status", "commit_link")
    module = _load(module_id, for_update=True)

    for field in DETAIL_FIELDS:
        if field in data:
            if field == "name" and not (data[field] or "").strip():
                raise ValidationError("name cannot be empty")
            setattr(module, field, data[field])
    if "start_date" in data:
        module.start_date = parse_date_input(data["start_date"], "start_date")
    if "end_date" in data:
        module.end_date = parse_date_input(data["end_date"], "end_date")
    _check_dates(module.start_date, module.end_date)

    if "cost" in data or "currency" in data:
        if module.status == ModuleStatus.COMPLETE.value:
            raise ValidationError("cost and currency are fixed once a module is complete")
        if "cost" in data:
            module.cost = _parse_cost(data["cost"])
        if "currency" in data:
            module.currency = _parse_currency(data["currency"])

    if data.get("status"):
        return transition_module(module_id, data["status"], commit_link=data.get("commit_link"))

    db.session.commit()
    return module


def delete_module(module_id: int) -> None:
    """Delete a module (and its finance row); the project stays."""
    module = _load(module_id)
    project = module.project
    _ensure_open(project, "remove module")
    db.session.delete(module)
    db.session.flush()
    recompute_project_progress(project)
    db.session.commit()
    logger.info("Module %d deleted from project %d", module_id, project.id)


# ═══════════════════════════════════════════════════════════════
# Status workflow
# ═══════════════════════════════════════════════════════════════
def transition_module(module_id: int, new_status: str, commit_link: str | None = None) -> Module:
    """Move a module to ``new_status``; see module docstring for the rules."""
    if new_status not in {s.value for s in ModuleStatus}:
        raise ValidationError(f"Unknown module status: {new_status}")

    commit_link = (commit_link or "").strip()
    if new_status == ModuleStatus.COMPLETE.value and not commit_link:
        raise ValidationError(COMMIT_LINK_REQUIRED)

    module = _load(module_id, for_update=True)
    old = module.status

    if old == ModuleStatus.COMPLETE.value and new_status == ModuleStatus.COMPLETE.value:
        module.commit_link = commit_link
        db.session.commit()
        logger.info("Module %d re-completed; finance row unchanged", module_id)
        return module

    if not validate_module_transition(old, new_status):
        raise StateConflictError("module", old, new_status)

    module.status = new_status
    if new_status == ModuleStatus.COMPLETE.value:
        module.commit_link = commit_link
        module.marked_complete_date = date.today()

    recompute_project_progress(module.project)
    db.session.commit()
    logger.info("Module %d: %s → %s", module_id, old, new_status)
    return module


def start_module(module_id: int) -> Module:
    return transition_module(module_id, ModuleStatus.STARTED.value)


def complete_module(module_id: int, commit_link: str | None) -> Module:
    require_text({"commit_link": commit_link}, "commit_link")
    return transition_module(module_id, ModuleStatus.COMPLETE.value, commit_link=commit_link)
