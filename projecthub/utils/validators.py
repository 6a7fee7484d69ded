"""User input validation for registration and sign-up.

Returns a list of human-readable problems instead of raising, so the
caller can report every rule that failed in one response.
"""

import re

from email_validator import EmailNotValidError, validate_email

from projecthub.models.enums import Role, values
from projecthub.utils.crypto import MAX_PASSWORD_BYTES, password_too_long

_CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z]*$")
_UPPER = re.compile(r"[A-Z]")
_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

MIN_PASSWORD_LENGTH = 8


def normalize_email(email: str) -> str:
    """Return the normalized address; raises EmailNotValidError."""
    return validate_email(email, check_deliverability=False).normalized


def _check_name(value, label, errors):
    if not value or not str(value).strip():
        errors.append(f"{label} is required.")
    elif not _CAMEL_CASE.match(value):
        errors.append(f"{label} must be camelCase (start lowercase, no spaces).")


def validate_user_input(
    first_name=None,
    last_name=None,
    email=None,
    role=None,
    password=None,
    check_password=False,
) -> list[str]:
    """Validate registration fields; password rules only when ``check_password``."""
    errors: list[str] = []

    _check_name(first_name, "First name", errors)
    _check_name(last_name, "Last name", errors)

    if not email or not str(email).strip():
        errors.append("Email is required.")
    else:
        try:
            normalize_email(email)
        except EmailNotValidError:
            errors.append("Email must be a valid format.")

    if not role or not str(role).strip():
        errors.append("Role is required.")
    elif Role.parse(role) is None:
        errors.append(f"Role must be one of: {', '.join(values(Role))}")

    if check_password:
        errors.extend(validate_password(password, first_name, last_name))

    return errors


def validate_password(password, first_name=None, last_name=None) -> list[str]:
    """Password strength rules applied when a user completes sign-up."""
    if not password or not password.strip():
        return ["Password is required."]

    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    if password_too_long(password):
        errors.append(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long.")
    if not _UPPER.search(password):
        errors.append("Password must contain at least one uppercase letter.")
    if not _DIGIT.search(password):
        errors.append("Password must contain at least one number.")
    if not _SPECIAL.search(password):
        errors.append("Password must contain at least one special character.")

    lowered = password.lower()
    if first_name and first_name.lower() in lowered:
        errors.append("Password should not contain your first name.")
    if last_name and last_name.lower() in lowered:
        errors.append("Password should not contain your last name.")
    return errors
