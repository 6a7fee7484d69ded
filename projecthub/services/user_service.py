"""
User Service — registration, sign-up completion, login.

Registration is two-step: an Admin registers a person (names, email,
role) without a password; the person then completes sign-up by choosing
a password. Login is refused until that has happened.
"""

import logging

from email_validator import EmailNotValidError
from flask import current_app

from projecthub.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from projecthub.models import db
from projecthub.models.enums import Role
from projecthub.models.people import RegisteredUser
from projecthub.services.login_throttle import get_login_throttle
from projecthub.utils.crypto import hash_password, verify_password
from projecthub.utils.helpers import require_fields, require_text
from projecthub.utils.validators import (
    normalize_email,
    validate_password,
    validate_user_input,
)

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
SIGNUP_INCOMPLETE = "Account not fully set up. Please complete sign-up."


def _normalized(email):
    try:
        return normalize_email(email)
    except EmailNotValidError:
        return (email or "").strip()


def get_user_by_email(email: str) -> RegisteredUser | None:
    return RegisteredUser.query.filter_by(email=_normalized(email)).first()


# ═══════════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════════
def authenticate(email: str, password: str) -> RegisteredUser:
    """
    Verify credentials for the login endpoint.

    Unknown email and wrong password give the same message. Both count
    as failures for the email's throttle; an unfinished sign-up does not.
    """
    if not email or not password:
        raise ValidationError("Email and password are required")

    throttle = get_login_throttle()
    throttle.check(email)

    user = get_user_by_email(email)
    if user is None:
        throttle.consume(email)
        logger.warning("Login failed: unknown email %s", email)
        raise AuthenticationError(INVALID_CREDENTIALS)

    if not user.has_password:
        raise AuthenticationError(SIGNUP_INCOMPLETE)

    if not verify_password(password, user.password_hash):
        throttle.consume(email)
        logger.warning("Login failed: wrong password for user %d", user.id)
        raise AuthenticationError(INVALID_CREDENTIALS)

    throttle.reset(email)
    logger.info("User %d logged in as %s", user.id, user.role)
    return user


# ═══════════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════════
def register_user(data: dict) -> RegisteredUser:
    """Admin registers a person; the password stays unset until sign-up."""
    require_text(data, "first_name", "last_name", "email", "role")
    first_name = (data.get("first_name") or "").strip()
    last_name = (data.get("last_name") or "").strip()
    email = (data.get("email") or "").strip()
    role = (data.get("role") or "").strip()

    errors = validate_user_input(first_name, last_name, email, role)
    if errors:
        raise ValidationError("Validation failed", details=errors)

    email = normalize_email(email)
    if RegisteredUser.query.filter_by(email=email).first():
        raise ConflictError("User", "email", email)

    user = RegisteredUser(
        first_name=first_name,
        last_name=last_name,
        email=email,
        role=Role(role).value,
    )
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %d (%s)", user.id, user.role)
    return user


def complete_signup(data: dict) -> RegisteredUser:
    """Set the password of a registered user who has none yet."""
    require_fields(data, "email", "password", "confirm_password")
    require_text(data, "email", "password", "confirm_password")
    password = data["password"]
    if password != data["confirm_password"]:
        raise ValidationError("Passwords do not match")

    user = get_user_by_email(data["email"])
    if user is None:
        raise NotFoundError("User", message="User not found. Contact your administrator.")
    if user.has_password:
        raise ValidationError("You are already set up.")

    errors = validate_password(password, user.first_name, user.last_name)
    if errors:
        raise ValidationError("Password does not meet requirements", details=errors)

    user.password_hash = hash_password(password, rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    db.session.commit()
    logger.info("User %d completed sign-up", user.id)
    return user


def lookup_user(email: str) -> dict:
    """Public lookup used by the sign-up form."""
    if not email:
        raise ValidationError("email query parameter is required")
    user = get_user_by_email(email)
    if user is None:
        raise NotFoundError("User")
    return user.to_dict()


def list_users(role: str | None = None) -> list[RegisteredUser]:
    q = RegisteredUser.query
    if role:
        parsed = Role.parse(role)
        if parsed is None:
            raise ValidationError(f"Unknown role: {role}")
        q = q.filter_by(role=parsed.value)
    return q.order_by(RegisteredUser.id).all()


def create_admin(first_name: str, last_name: str, email: str, password: str) -> RegisteredUser:
    """Bootstrap an Admin with a password (used by the ``create-admin`` command)."""
    errors = validate_user_input(
        first_name, last_name, email, Role.ADMIN.value,
        password=password, check_password=True,
    )
    if errors:
        raise ValidationError("Validation failed", details=errors)

    email = normalize_email(email)
    if RegisteredUser.query.filter_by(email=email).first():
        raise ConflictError("User", "email", email)

    user = RegisteredUser(
        first_name=first_name,
        last_name=last_name,
        email=email,
        role=Role.ADMIN.value,
        password_hash=hash_password(password, rounds=current_app.config.get("BCRYPT_ROUNDS", 12)),
    )
    db.session.add(user)
    db.session.commit()
    return user
