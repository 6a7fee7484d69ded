"""
Staff directory — Team Lead and Developer profiles.

Profiles are maintained by Admins and are separate from login identities
(``RegisteredUser``); the two are linked by email where needed, e.g. a
Developer's own project view.
"""

import logging

from email_validator import EmailNotValidError

from projecthub.core.exceptions import ConflictError, NotFoundError, ValidationError
from projecthub.models import db
from projecthub.models.people import Developer, TeamLead
from projecthub.utils.helpers import require_fields, require_text
from projecthub.utils.validators import normalize_email

logger = logging.getLogger(__name__)

INVALID_TEAM_LEAD = "Invalid Team Lead ID. The specified Team Lead does not exist."


def _clean_email(email):
    try:
        return normalize_email(str(email).strip())
    except EmailNotValidError:
        raise ValidationError("Email must be a valid format.", details={"email": email})


def _email_taken(model, email, exclude_id=None):
    q = model.query.filter(model.email == email)
    if exclude_id is not None:
        q = q.filter(model.id != exclude_id)
    return db.session.query(q.exists()).scalar()


def _resolve_team_lead(team_lead_id):
    try:
        lead = db.session.get(TeamLead, int(team_lead_id))
    except (TypeError, ValueError):
        lead = None
    if lead is None:
        raise ValidationError(INVALID_TEAM_LEAD, details={"team_lead_id": team_lead_id})
    return lead


# ═══════════════════════════════════════════════════════════════
# Team Leads
# ═══════════════════════════════════════════════════════════════
def create_team_lead(data: dict) -> TeamLead:
    require_fields(data, "first_name", "last_name", "email")
    require_text(data, "first_name", "last_name", "email")
    email = _clean_email(data["email"])
    if _email_taken(TeamLead, email):
        raise ConflictError("Team lead", "email", email)

    lead = TeamLead(
        first_name=data["first_name"].strip(),
        last_name=data["last_name"].strip(),
        email=email,
    )
    db.session.add(lead)
    db.session.commit()
    logger.info("Team lead %d created", lead.id)
    return lead


def update_team_lead(team_lead_id: int, data: dict) -> TeamLead:
    """Partial update; omitted or empty fields keep their current value."""
    lead = db.session.get(TeamLead, team_lead_id)
    if lead is None:
        raise NotFoundError("Team lead", team_lead_id)

    require_text(data, "first_name", "last_name", "email")
    if data.get("email"):
        email = _clean_email(data["email"])
        if _email_taken(TeamLead, email, exclude_id=lead.id):
            raise ConflictError("Team lead", "email", email)
        lead.email = email
    lead.first_name = data.get("first_name") or lead.first_name
    lead.last_name = data.get("last_name") or lead.last_name

    db.session.commit()
    return lead


def list_team_leads() -> list[TeamLead]:
    return TeamLead.query.order_by(TeamLead.last_name, TeamLead.first_name).all()


# ═══════════════════════════════════════════════════════════════
# Developers
# ═══════════════════════════════════════════════════════════════
def create_developer(data: dict) -> Developer:
    require_fields(data, "first_name", "last_name", "email", "team_lead_id")
    require_text(data, "first_name", "last_name", "email", "expertise", "department")
    email = _clean_email(data["email"])
    if _email_taken(Developer, email):
        raise ConflictError("Developer", "email", email)
    lead = _resolve_team_lead(data["team_lead_id"])

    dev = Developer(
        first_name=data["first_name"].strip(),
        last_name=data["last_name"].strip(),
        email=email,
        expertise=data.get("expertise"),
        department=data.get("department"),
        team_lead=lead,
    )
    db.session.add(dev)
    db.session.commit()
    logger.info("Developer %d created under team lead %d", dev.id, lead.id)
    return dev


def update_developer(developer_id: int, data: dict) -> Developer:
    """Partial update; omitted or empty fields keep their current value."""
    dev = db.session.get(Developer, developer_id)
    if dev is None:
        raise NotFoundError("Developer", developer_id)

    require_text(data, "first_name", "last_name", "email", "expertise", "department")
    if data.get("email"):
        email = _clean_email(data["email"])
        if _email_taken(Developer, email, exclude_id=dev.id):
            raise ConflictError("Developer", "email", email)
        dev.email = email
    if data.get("team_lead_id"):
        dev.team_lead = _resolve_team_lead(data["team_lead_id"])
    dev.first_name = data.get("first_name") or dev.first_name
    dev.last_name = data.get("last_name") or dev.last_name
    dev.expertise = data.get("expertise") or dev.expertise
    dev.department = data.get("department") or dev.department

    db.session.commit()
    return dev


def list_developers(team_lead_id: int | None = None) -> list[Developer]:
    q = Developer.query
    if team_lead_id is not None:
        q = q.filter(Developer.team_lead_id == team_lead_id)
    return q.order_by(Developer.last_name, Developer.first_name).all()


