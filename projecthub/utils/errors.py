"""Standard JSON error bodies: ``{"error": <message>, "code": <E.*>}``.

Usage
-----
    from projecthub.utils.errors import api_error, E

    return api_error(E.FORBIDDEN, "Access denied")
    return api_error(E.RATE_LIMITED, str(exc), retry_after=exc.retry_after)
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Machine-readable error codes (``ERR_`` prefix)."""

    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    VALIDATION_CONSTRAINT = "ERR_VALIDATION_CONSTRAINT"
    UNAUTHENTICATED = "ERR_UNAUTHENTICATED"
    SESSION_INVALID = "ERR_SESSION_INVALID"
    FORBIDDEN = "ERR_FORBIDDEN"
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"
    RATE_LIMITED = "ERR_RATE_LIMITED"
    INTERNAL = "ERR_INTERNAL"


# HTTP status per code; codes not listed answer 400
_STATUS_BY_CODE: dict[str, int] = {
    E.UNAUTHENTICATED: 401,
    E.SESSION_INVALID: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.RATE_LIMITED: 429,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None,
              details: dict | list | None = None, **extra):
    """Build ``(response, status)`` for a Flask view or error handler.

    ``details`` carries field errors or rule violations and is omitted
    when empty; ``extra`` adds top-level keys such as ``retry_after``.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    body.update(extra)
    return jsonify(body), status or _STATUS_BY_CODE.get(code, 400)
