"""
Shared pytest fixtures for the ProjectHub test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB recreate + login-throttle reset (autouse)
    - client: Flask test client (function-scoped)
    - make_user / auth_headers: registered users of any role, Bearer headers
    - admin, ceo, team_lead, developer, finance: one user per role
    - team_lead_profile, developer_profile: staff directory rows
"""

import pytest

from projecthub import create_app
from projecthub.models import db as _db
from projecthub.models.enums import Role
from projecthub.models.people import Developer, RegisteredUser, TeamLead
from projecthub.services.jwt_service import generate_access_token
from projecthub.utils.crypto import hash_password

PASSWORD = "Str0ng!Pass"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, recreate tables afterwards."""
    with app.app_context():
        app.extensions["login_throttle"].reset_all()
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Users & tokens ───────────────────────────────────────────────────────


@pytest.fixture()
def make_user():
    """Factory: create a RegisteredUser with a password set."""
    counter = {"n": 0}

    def _make(role, first_name="test", last_name="user", email=None, password=PASSWORD):
        counter["n"] += 1
        user = RegisteredUser(
            first_name=first_name,
            last_name=last_name,
            email=email or f"user{counter['n']}@acme.io",
            role=Role(role).value,
            password_hash=hash_password(password, rounds=4) if password else None,
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def auth_headers():
    """Factory: Bearer header for a user."""
    def _headers(user):
        return {"Authorization": f"Bearer {generate_access_token(user)}"}
    return _headers


@pytest.fixture()
def admin(make_user):
    return make_user(Role.ADMIN, "ada", "admin", "admin@acme.io")


@pytest.fixture()
def ceo(make_user):
    return make_user(Role.CEO, "carl", "chief", "ceo@acme.io")


@pytest.fixture()
def team_lead(make_user):
    return make_user(Role.TEAM_LEAD, "tina", "lead", "lead@acme.io")


@pytest.fixture()
def developer(make_user):
    return make_user(Role.DEVELOPER, "dave", "coder", "dev@acme.io")


@pytest.fixture()
def finance(make_user):
    return make_user(Role.FINANCE, "fay", "books", "finance@acme.io")


# ── Staff directory ──────────────────────────────────────────────────────


@pytest.fixture()
def team_lead_profile(team_lead):
    lead = TeamLead(first_name="tina", last_name="lead", email=team_lead.email)
    _db.session.add(lead)
    _db.session.commit()
    return lead


@pytest.fixture()
def developer_profile(developer, team_lead_profile):
    """Developer profile sharing the developer user's email."""
    dev = Developer(
        first_name="dave", last_name="coder", email=developer.email,
        expertise="Backend", department="Engineering", team_lead_id=team_lead_profile.id,
    )
    _db.session.add(dev)
    _db.session.commit()
    return dev
