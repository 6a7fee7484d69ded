"""
Report service — team-lead progress report, developer project view,
per-role dashboard summaries.
"""

from __future__ import annotations

import logging

from sqlalchemy import func

from projecthub.core.exceptions import NotFoundError
from projecthub.models import db
from projecthub.models.enums import ModuleStatus, PaymentStatus, ProjectStatus, Role
from projecthub.models.finance import Finance
from projecthub.models.people import Developer, RegisteredUser, TeamLead
from projecthub.models.project import Module, Project
from projecthub.services.finance_service import payment_summary
from projecthub.services.project_service import project_stats

logger = logging.getLogger(__name__)


def _module_counts(modules) -> dict:
    total = len(modules)
    completed = sum(1 for m in modules if m.status == ModuleStatus.COMPLETE.value)
    return {
        "total_modules": total,
        "completed_modules": completed,
        "started_modules": sum(1 for m in modules if m.status == ModuleStatus.STARTED.value),
        "pending_modules": sum(1 for m in modules if m.status == ModuleStatus.PENDING.value),
        "progress_percentage": round(completed / total * 100) if total else 0,
    }


def _module_detail(m: Module) -> dict:
    return {
        "id": m.id,
        "name": m.name,
        "description": m.description,
        "status": m.status,
        "start_date": m.start_date.isoformat() if m.start_date else None,
        "end_date": m.end_date.isoformat() if m.end_date else None,
        "marked_complete_date": (
            m.marked_complete_date.isoformat() if m.marked_complete_date else None
        ),
        "commit_link": m.commit_link,
    }


# ═══════════════════════════════════════════════════════════════
# Team Lead report
# ═══════════════════════════════════════════════════════════════
def team_lead_report(user_id: int, developer_id: int | None = None,
                     project_id: int | None = None) -> dict:
    """
    One row per (project, assigned developer) for projects the caller
    created. A project with no developers still gets one row with empty
    developer fields, unless a developer filter is set.
    """
    q = Project.query.filter(Project.created_by == user_id)
    if project_id is not None:
        q = q.filter(Project.id == project_id)
    projects = q.order_by(Project.id.desc()).all()

    reports = []
    for project in projects:
        modules = list(project.modules)
        base = {
            "project_id": project.id,
            "project_name": project.name,
            "project_description": project.description,
            "project_status": project.status,
            "created_by": project.created_by,
            **_module_counts(modules),
            "module_details": [_module_detail(m) for m in modules],
        }
        developers = sorted(project.developers, key=lambda d: d.id)
        if developer_id is not None:
            developers = [d for d in developers if d.id == developer_id]
            if not developers:
                continue
        if not developers:
            reports.append({**base, "developer_id": None, "developer_name": None,
                            "developer_email": None, "developer_expertise": None})
            continue
        for dev in developers:
            reports.append({
                **base,
                "developer_id": dev.id,
                "developer_name": dev.full_name,
                "developer_email": dev.email,
                "developer_expertise": dev.expertise,
            })

    own_developers = (
        Developer.query
        .join(Project, Developer.project_id == Project.id)
        .filter(Project.created_by == user_id)
        .order_by(Developer.first_name, Developer.last_name)
        .all()
    )
    own_projects = (
        Project.query.filter(Project.created_by == user_id).order_by(Project.name).all()
    )
    return {
        "reports": reports,
        "developers": [
            {"developer_id": d.id, "developer_name": d.full_name, "developer_email": d.email}
            for d in own_developers
        ],
        "projects": [{"project_id": p.id, "project_name": p.name} for p in own_projects],
    }


# ═══════════════════════════════════════════════════════════════
# Developer view
# ═══════════════════════════════════════════════════════════════
def _developer_for(email: str) -> Developer:
    developer = Developer.query.filter(Developer.email == email).first() if email else None
    if developer is None:
        raise NotFoundError("Developer profile", message="Developer profile not found.")
    return developer


def developer_projects(email: str) -> list[dict]:
    """The caller's current project with its modules (empty list when unassigned)."""
    developer = _developer_for(email)
    if developer.project is None:
        return []
    return [developer.project.to_dict(include_modules=True)]


# ═══════════════════════════════════════════════════════════════
# Dashboard summaries (one per role)
# ═══════════════════════════════════════════════════════════════
def _admin_summary(user_id, email):
    by_role = dict(
        db.session.query(RegisteredUser.role, func.count(RegisteredUser.id))
        .group_by(RegisteredUser.role)
        .all()
    )
    return {
        "users_by_role": {r.value: by_role.get(r.value, 0) for r in Role},
        "pending_signups": RegisteredUser.query.filter(RegisteredUser.password_hash.is_(None)).count(),
        "team_leads": TeamLead.query.count(),
        "developers": Developer.query.count(),
    }


def _ceo_summary(user_id, email):
    summary = project_stats()
    summary["awaiting_decision"] = summary["status_counts"][ProjectStatus.PENDING.value]
    summary["payments"] = payment_summary()
    return summary


def _team_lead_summary(user_id, email):
    rows = (
        db.session.query(Project.status, func.count(Project.id))
        .filter(Project.created_by == user_id)
        .group_by(Project.status)
        .all()
    )
    counts = {s.value: 0 for s in ProjectStatus}
    counts.update(dict(rows))
    modules = (
        Module.query.join(Project, Module.project_id == Project.id)
        .filter(Project.created_by == user_id)
        .all()
    )
    return {"project_status_counts": counts, **_module_counts(modules)}


def _developer_summary(user_id, email):
    developer = _developer_for(email)
    modules = Module.query.filter(Module.created_by == developer.id).all()
    payments = (
        Finance.query.join(Module, Finance.module_id == Module.id)
        .filter(Module.created_by == developer.id)
        .all()
    )
    return {
        "current_project": developer.project.to_dict() if developer.project else None,
        **_module_counts(modules),
        "payments_paid": sum(1 for f in payments if f.payment_status == PaymentStatus.PAID.value),
        "payments_pending": sum(1 for f in payments if f.payment_status == PaymentStatus.PENDING.value),
    }


def _finance_summary(user_id, email):
    return payment_summary()


_SUMMARIES = {
    Role.ADMIN: _admin_summary,
    Role.CEO: _ceo_summary,
    Role.TEAM_LEAD: _team_lead_summary,
    Role.DEVELOPER: _developer_summary,
    Role.FINANCE: _finance_summary,
}

_missing = set(Role) - set(_SUMMARIES)
if _missing:
    raise RuntimeError(f"No dashboard summary for roles: {sorted(r.value for r in _missing)}")


def dashboard_summary(role: Role, *, user_id: int, email: str | None) -> dict:
    return {"role": role.value, "summary": _SUMMARIES[role](user_id, email)}
