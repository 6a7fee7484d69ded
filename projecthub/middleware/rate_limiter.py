"""
Rate limiting configuration.

Applies per-blueprint request limits using Flask-Limiter. The Limiter
instance is created in projecthub/__init__.py with no default limits;
this module applies granular limits per route category.

These are coarse request-rate limits. Per-email login lockout lives in
``services.login_throttle``.

Usage:
    from projecthub.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

from flask import g, request as flask_request

AUTH_LIMIT = "20/minute"
WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def rate_limit_key():
    """Limiter key: the session user when known, else remote IP."""
    user_id = getattr(g, "jwt_user_id", None)
    if user_id is not None:
        return f"user:{user_id}"
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits:
        - Auth / users:     20/minute  (login and sign-up, keyed per IP)
        - Write endpoints:  60/minute  (projects, modules, finance, staff)
        - Read endpoints:   200/minute (reports and dashboards)
        - Health check:     exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name in ("auth_bp", "user_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(AUTH_LIMIT)(bp)

    for bp_name in ("project_bp", "module_bp", "finance_bp", "staff_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT, key_func=rate_limit_key)(bp)

    bp = app.blueprints.get("report_bp")
    if bp:
        limiter.limit(READ_LIMIT, key_func=rate_limit_key)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: auth=%s write=%s read=%s",
        AUTH_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
