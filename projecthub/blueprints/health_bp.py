"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — database and limiter-storage status
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from projecthub.models import db
from projecthub.services.login_throttle import get_login_throttle

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness check with dependency status."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except SQLAlchemyError as exc:
        db.session.rollback()
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check — database failed: %s", exc)

    # ── Throttle storage (memory or Redis) ───────────────────────────
    storage_uri = current_app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    ok = get_login_throttle().storage.check()
    checks["limiter_storage"] = {
        "status": "ok" if ok else "error",
        "backend": storage_uri.split("://", 1)[0],
    }
    # Throttle storage is not fatal for serving reads
    if not ok:
        logger.warning("Health check — limiter storage unreachable (%s)", storage_uri.split("@")[-1])

    checks["app"] = {
        "name": "ProjectHub",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code
