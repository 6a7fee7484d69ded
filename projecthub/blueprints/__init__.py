"""
ProjectHub
Blueprint registry and shared request helpers.
"""

from flask import request

from projecthub.core.exceptions import ValidationError

DEFAULT_PAGE_SIZE = 200
MAX_PAGE_SIZE = 1000


def json_body() -> dict:
    """The request's JSON object; ``{}`` when there is no body.

    Arrays, strings and numbers at the top level are a 400.
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def paginate_query(query, default_limit=DEFAULT_PAGE_SIZE, max_limit=MAX_PAGE_SIZE):
    """Apply ``?limit=&offset=`` to a query; returns ``(items, total)``.

    Non-numeric values fall back to the defaults; ``limit`` is clamped to
    ``1..max_limit`` and ``offset`` to ``>= 0``.
    """
    limit = request.args.get("limit", default_limit, type=int)
    offset = request.args.get("offset", 0, type=int)
    limit = max(1, min(limit, max_limit))
    offset = max(offset, 0)
    return query.limit(limit).offset(offset).all(), query.order_by(None).count()
