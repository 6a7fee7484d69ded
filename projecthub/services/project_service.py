"""
Project service — creation, edits, CEO decisions, appeals, completion.

Status changes are conditional UPDATEs filtered on the expected current
status, so two concurrent callers cannot both move the same project.
A zero row count means the project is gone or has already moved on.

    Pending  → Approved | Rejected      decide_project   (CEO)
    Rejected → Pending                  appeal_project   (creating Team Lead)
    Approved → Completed                complete_project (CEO / creating Team Lead)
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from projecthub.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    StateConflictError,
    ValidationError,
)
from projecthub.models import db
from projecthub.models.enums import ProjectStatus, Role
from projecthub.models.people import Developer
from projecthub.models.project import Project, validate_project_transition
from projecthub.utils.helpers import require_fields, require_text

logger = logging.getLogger(__name__)

NOT_ACTIONABLE = "Project not found or already actioned."
REVIEW_REQUIRED = "A review reason is required for rejection."
APPEAL_NOT_FOUND = "Project not found, not rejected, or you do not have permission to appeal it."
APPEAL_VIEW_NOT_FOUND = "Project not found, not rejected, or you do not have permission to view it."
DELETE_NOT_FOUND = "Project not found or you do not have permission to delete it."
NO_APPEAL_TEXT = "No additional response provided."

EDITABLE_FIELDS = ("name", "description", "duration", "review", "progress")


def _parse_ids(values, field):
    if not isinstance(values, list) or not values:
        raise ValidationError(f"{field} must be a non-empty list of ids", details={field: values})
    try:
        return [int(v) for v in values]
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must contain integer ids", details={field: values})


def _parse_progress(value):
    try:
        progress = int(value)
    except (TypeError, ValueError):
        raise ValidationError("progress must be an integer between 0 and 100")
    if not 0 <= progress <= 100:
        raise ValidationError("progress must be an integer between 0 and 100")
    return progress


def get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


# ═══════════════════════════════════════════════════════════════
# Create / Update / Delete
# ═══════════════════════════════════════════════════════════════
def create_projects(data: dict, *, actor_id: int) -> list[Project]:
    """
    Create one Pending project per developer, all in one transaction.

    Every developer id must exist; the first unknown id rolls back the
    whole batch.
    """
    require_fields(data, "name", "description", "duration", "developer_ids")
    require_text(data, "name", "description")
    developer_ids = _parse_ids(data["developer_ids"], "developer_ids")

    created = []
    try:
        for dev_id in developer_ids:
            developer = db.session.get(Developer, dev_id)
            if developer is None:
                raise NotFoundError(
                    "Developer", dev_id, message=f"Developer with ID {dev_id} not found."
                )
            project = Project(
                name=data["name"].strip(),
                description=data["description"],
                duration=str(data["duration"]),
                status=ProjectStatus.PENDING.value,
                review="",
                progress=0,
                created_by=actor_id,
            )
            db.session.add(project)
            db.session.flush()
            developer.project_id = project.id
            created.append(project)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("User %d created %d project(s) '%s'", actor_id, len(created), data["name"])
    return created


def update_project(project_id: int, data: dict) -> Project:
    """
    Edit a project that is still Pending or Rejected.

    ``developer_ids`` (optional) replaces the developers assigned to it.
    Status changes go through decide/appeal/complete, never through here.
    """
    if "status" in data:
        raise ValidationError(
            "status cannot be changed by an update; use the decision, appeal or complete actions"
        )
    require_text(data, "name", "description", "review")

    project = get_project(project_id)
    if project.is_locked:
        raise PermissionDeniedError(f"Cannot update {project.status.lower()} projects")

    for field in EDITABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "progress":
            value = _parse_progress(value)
        elif field == "name" and not (value or "").strip():
            raise ValidationError("name cannot be empty")
        setattr(project, field, value)

    if "developer_ids" in data:
        developer_ids = data["developer_ids"] or []
        if not isinstance(developer_ids, list):
            raise ValidationError("developer_ids must be a list of ids")
        Developer.query.filter(Developer.project_id == project.id).update(
            {"project_id": None}, synchronize_session="fetch"
        )
        if developer_ids:
            ids = _parse_ids(developer_ids, "developer_ids")
            Developer.query.filter(Developer.id.in_(ids)).update(
                {"project_id": project.id}, synchronize_session="fetch"
            )

    db.session.commit()
    return project


def delete_project(project_id: int, *, actor_id: int, actor_role: Role) -> dict:
    """
    Delete a project with its modules and their finance rows.

    CEO may delete any project, a Team Lead only the ones they created.
    Developers on the project are released.
    """
    project = db.session.get(Project, project_id)
    if project is None or (actor_role == Role.TEAM_LEAD and project.created_by != actor_id):
        raise NotFoundError("Project", project_id, message=DELETE_NOT_FOUND)

    Developer.query.filter(Developer.project_id == project.id).update(
        {"project_id": None}, synchronize_session="fetch"
    )
    snapshot = project.to_dict()
    db.session.delete(project)
    db.session.commit()
    logger.info("Project %d deleted by user %d", project_id, actor_id)
    return snapshot


# ═══════════════════════════════════════════════════════════════
# Status workflow
# ═══════════════════════════════════════════════════════════════
def decide_project(project_id: int, data: dict) -> Project:
    """CEO approves or rejects a Pending project."""
    require_fields(data, "status")
    require_text(data, "status", "review")
    status = data["status"]
    if status not in (ProjectStatus.APPROVED.value, ProjectStatus.REJECTED.value):
        raise ValidationError('Invalid status. Must be "Approved" or "Rejected".')

    review = (data.get("review") or "").strip()
    if status == ProjectStatus.REJECTED.value and not review:
        raise ValidationError(REVIEW_REQUIRED)

    updated = (
        Project.query
        .filter(Project.id == project_id, Project.status == ProjectStatus.PENDING.value)
        .update({"status": status, "review": review}, synchronize_session="fetch")
    )
    if not updated:
        db.session.rollback()
        raise NotFoundError("Project", project_id, message=NOT_ACTIONABLE)

    db.session.commit()
    logger.info("Project %d %s", project_id, status.lower())
    return get_project(project_id)


def get_appeal_project(project_id: int, *, actor_id: int) -> Project:
    """A Rejected project of the caller's own, with its review."""
    project = Project.query.filter(
        Project.id == project_id,
        Project.status == ProjectStatus.REJECTED.value,
        Project.created_by == actor_id,
    ).first()
    if project is None:
        raise NotFoundError("Project", project_id, message=APPEAL_VIEW_NOT_FOUND)
    return project


def appeal_project(project_id: int, data: dict, *, actor_id: int) -> Project:
    """
    Resubmit a Rejected project: new details, back to Pending.

    The review keeps the CEO's reason followed by the appeal text.
    """
    require_fields(data, "name", "description")
    require_text(data, "name", "description", "appeal_response")

    project = Project.query.filter(
        Project.id == project_id,
        Project.status == ProjectStatus.REJECTED.value,
        Project.created_by == actor_id,
    ).first()
    if project is None:
        raise NotFoundError("Project", project_id, message=APPEAL_NOT_FOUND)

    appeal_text = (data.get("appeal_response") or "").strip() or NO_APPEAL_TEXT
    review = f"ORIGINAL REVIEW: {project.review or ''}\n\nAPPEAL RESPONSE: {appeal_text}"

    updated = (
        Project.query
        .filter(Project.id == project_id, Project.status == ProjectStatus.REJECTED.value)
        .update({
            "name": data["name"].strip(),
            "description": data["description"],
            "duration": str(data.get("duration") or ""),
            "status": ProjectStatus.PENDING.value,
            "review": review,
        }, synchronize_session="fetch")
    )
    if not updated:
        db.session.rollback()
        raise NotFoundError("Project", project_id, message=APPEAL_NOT_FOUND)

    db.session.commit()
    logger.info("Project %d appealed by user %d", project_id, actor_id)
    return get_project(project_id)


def complete_project(project_id: int, *, actor_id: int, actor_role: Role) -> Project:
    """Approved → Completed with progress 100."""
    project = get_project(project_id)
    if actor_role == Role.TEAM_LEAD and project.created_by != actor_id:
        raise PermissionDeniedError("Only the project's creator can complete it")

    target = ProjectStatus.COMPLETED.value
    if not validate_project_transition(project.status, target):
        raise StateConflictError("project", project.status, target)

    updated = (
        Project.query
        .filter(Project.id == project_id, Project.status == ProjectStatus.APPROVED.value)
        .update({"status": target, "progress": 100}, synchronize_session="fetch")
    )
    if not updated:
        db.session.rollback()
        raise StateConflictError("project", get_project(project_id).status, target)

    db.session.commit()
    logger.info("Project %d completed", project_id)
    return get_project(project_id)


# ═══════════════════════════════════════════════════════════════
# Listings
# ═══════════════════════════════════════════════════════════════
def project_query(status: str | None = None):
    q = Project.query
    if status:
        if status not in {s.value for s in ProjectStatus}:
            raise ValidationError(f"Unknown project status: {status}")
        q = q.filter(Project.status == status)
    return q.order_by(Project.id.desc())


def list_projects(status: str | None = None) -> list[Project]:
    return project_query(status).all()


def list_pending() -> list[Project]:
    return list_projects(ProjectStatus.PENDING.value)


def list_created_by(user_id: int) -> list[Project]:
    return Project.query.filter(Project.created_by == user_id).order_by(Project.id.desc()).all()


def list_approved() -> list[dict]:
    """Approved projects with their developers and those developers' team leads."""
    result = []
    for project in list_projects(ProjectStatus.APPROVED.value):
        d = project.to_dict()
        d["developers"] = [dev.full_name for dev in project.developers]
        d["team_leads"] = sorted({
            dev.team_lead.full_name for dev in project.developers if dev.team_lead is not None
        })
        result.append(d)
    return result


def project_stats() -> dict:
    """Status counts plus the five approved projects furthest along."""
    rows = (
        db.session.query(Project.status, func.count(Project.id))
        .group_by(Project.status)
        .all()
    )
    counts = {s.value: 0 for s in ProjectStatus}
    counts.update({status: count for status, count in rows})

    top = (
        Project.query
        .filter(Project.status == ProjectStatus.APPROVED.value)
        .order_by(Project.progress.desc(), Project.id)
        .limit(5)
        .all()
    )
    return {
        "status_counts": counts,
        "total": sum(counts.values()),
        "top_progress": [{"id": p.id, "name": p.name, "progress": p.progress} for p in top],
    }
