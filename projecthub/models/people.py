"""
People Models — registered users, team leads, developers.

RegisteredUser is the login identity (role + password hash).
TeamLead / Developer are directory profiles maintained by Admins; a
Developer optionally belongs to a TeamLead and works on one current Project.
"""

from datetime import datetime, timezone

from projecthub.models import db
from projecthub.models.enums import Role, values


def _in_clause(column, enum_cls):
    quoted = ", ".join(f"'{v}'" for v in values(enum_cls))
    return f"{column} IN ({quoted})"


# ═══════════════════════════════════════════════════════════════
# 1. REGISTERED USERS
# ═══════════════════════════════════════════════════════════════
class RegisteredUser(db.Model):
    __tablename__ = "reg_users"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(255), nullable=False)
    last_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    role = db.Column(db.String(50), nullable=False)
    password_hash = db.Column(db.String(256))  # NULL until sign-up is completed
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.CheckConstraint(_in_clause("role", Role), name="ck_reg_users_role"),
        db.Index("idx_reg_users_email", "email"),
    )

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def to_dict(self):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "role": self.role,
            "has_password": self.has_password,
        }


# ═══════════════════════════════════════════════════════════════
# 2. TEAM LEADS
# ═══════════════════════════════════════════════════════════════
class TeamLead(db.Model):
    __tablename__ = "team_lead"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(255), nullable=False)
    last_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)

    __table_args__ = (
        db.Index("idx_teamlead_email", "email"),
    )

    developers = db.relationship("Developer", back_populates="team_lead", lazy="dynamic")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
        }


# ═══════════════════════════════════════════════════════════════
# 3. DEVELOPERS
# ═══════════════════════════════════════════════════════════════
class Developer(db.Model):
    __tablename__ = "developer"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(255), nullable=False)
    last_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    expertise = db.Column(db.String(255))
    department = db.Column(db.String(255))
    team_lead_id = db.Column(
        db.Integer, db.ForeignKey("team_lead.id", ondelete="SET NULL"), nullable=True
    )
    project_id = db.Column(
        db.Integer, db.ForeignKey("project.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        db.Index("idx_developer_email", "email"),
        db.Index("idx_developer_teamlead", "team_lead_id"),
        db.Index("idx_developer_project", "project_id"),
    )

    team_lead = db.relationship("TeamLead", back_populates="developers")
    project = db.relationship("Project", back_populates="developers")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "expertise": self.expertise,
            "department": self.department,
            "team_lead_id": self.team_lead_id,
            "project_id": self.project_id,
        }
