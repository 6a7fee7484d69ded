"""Shared utility functions for blueprints and services.

parse_date:                returns None on bad input
parse_date_input:          raises ValidationError on bad input
classify_integrity_error:  unique / foreign_key / check / other
require_fields:            raises ValidationError naming missing fields
require_text:              raises ValidationError naming non-string fields
"""
from datetime import date, datetime

from projecthub.core.exceptions import ValidationError


def parse_date(value):
    """Parse a date string (ISO or DD.MM.YYYY) to a date object.

    Returns None for empty/invalid input. Supports:
    - YYYY-MM-DD
    - YYYY-MM-DDTHH:MM:SS (→ .date())
    - DD.MM.YYYY
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value)).date()
    except (ValueError, TypeError):
        pass
    try:
        return datetime.strptime(str(value), "%d.%m.%Y").date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value, field="date"):
    """Parse a date, raising ValidationError on unparseable input."""
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(
            f"Invalid {field}. Use YYYY-MM-DD or DD.MM.YYYY.",
            details={field: value},
        )
    return parsed


def classify_integrity_error(exc) -> str:
    """Return 'unique', 'foreign_key', 'check' or 'other' for an IntegrityError.

    PostgreSQL drivers expose the SQLSTATE (psycopg2 ``pgcode``, psycopg 3
    ``sqlstate``); SQLite only has the message text.
    """
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate == "23505":
        return "unique"
    if sqlstate == "23503":
        return "foreign_key"
    if sqlstate == "23514":
        return "check"

    msg = str(orig if orig is not None else exc).lower()
    if "unique constraint" in msg or "duplicate key" in msg:
        return "unique"
    if "foreign key constraint" in msg:
        return "foreign_key"
    if "check constraint" in msg:
        return "check"
    return "other"


def require_fields(data: dict, *fields: str) -> None:
    """Raise ValidationError naming every field that is missing or blank.

    ``0`` and ``False`` count as present; ``None`` and whitespace-only
    strings do not.
    """
    missing = []
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(field)
        elif isinstance(value, (list, dict)) and not value:
            missing.append(field)
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={f: "required" for f in missing},
        )


def require_text(data: dict, *fields: str) -> None:
    """Raise ValidationError naming every supplied field that is not a string.

    Absent and ``None`` values pass; presence is ``require_fields``' job.
    """
    wrong = [f for f in fields if data.get(f) is not None and not isinstance(data[f], str)]
    if wrong:
        raise ValidationError(
            f"Fields must be text: {', '.join(wrong)}",
            details={f: "must be a string" for f in wrong},
        )
