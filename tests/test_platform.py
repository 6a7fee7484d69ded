"""
Platform plumbing — health probes, security headers, request guards,
JSON error bodies, login throttle storage, CLI commands, config.
"""

import pytest
from werkzeug.exceptions import TooManyRequests

from projecthub.config import ProductionConfig
from projecthub.models.people import RegisteredUser
from projecthub.services.login_throttle import LoginThrottle


# ═══════════════════════════════════════════════════════════════
# Health
# ═══════════════════════════════════════════════════════════════

class TestHealth:
    def test_ready(self, client):
        res = client.get("/api/v1/health/ready")
        assert res.status_code == 200
        assert res.get_json() == {"status": "ok"}

    def test_live(self, client):
        res = client.get("/api/v1/health/live")
        assert res.status_code == 200
        body = res.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "ok"
        assert body["checks"]["limiter_storage"] == {"status": "ok", "backend": "memory"}
        assert body["checks"]["app"]["testing"] is True


# ═══════════════════════════════════════════════════════════════
# Headers + guards
# ═══════════════════════════════════════════════════════════════

class TestResponsePlumbing:
    def test_security_headers(self, client):
        res = client.get("/api/v1/health/ready")
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-Frame-Options"] == "DENY"
        assert res.headers["Content-Security-Policy"].startswith("default-src 'none'")
        assert res.headers["Cache-Control"] == "no-store"

    def test_request_id_echoed(self, client):
        res = client.get("/api/v1/health/ready", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert float(res.headers["X-Request-Duration-Ms"]) >= 0

    def test_unknown_route_is_json(self, client):
        res = client.get("/api/v1/nope")
        assert res.status_code == 404
        assert res.get_json() == {"error": "Not found", "code": "ERR_NOT_FOUND",
                                  "path": "/api/v1/nope"}

    def test_non_json_body_rejected(self, client):
        res = client.post("/api/v1/auth/login", data="email=x", content_type="text/plain")
        assert res.status_code == 415

    def test_method_not_allowed(self, client):
        res = client.delete("/api/v1/auth/login")
        assert res.status_code == 405
        assert "error" in res.get_json()

    def test_request_limit_body_names_limit(self, app):
        with app.test_request_context("/api/v1/projects"):
            response, status = app.handle_http_exception(TooManyRequests("20 per 1 minute"))
        assert status == 429
        body = response.get_json()
        assert body["code"] == "ERR_RATE_LIMITED"
        assert body["limit"] == "20 per 1 minute"
        assert "retry_after" not in body


# ═══════════════════════════════════════════════════════════════
# Login throttle
# ═══════════════════════════════════════════════════════════════

class TestLoginThrottleStorage:
    def test_counts_per_normalized_email(self):
        throttle = LoginThrottle("memory://", max_attempts=2, lock_seconds=60)
        throttle.consume("Someone@Acme.io ")
        assert throttle.retry_after("someone@acme.io") == 0
        throttle.consume("someone@acme.io")
        assert 0 < throttle.retry_after("SOMEONE@acme.io") <= 60

    def test_reset_unlocks(self):
        throttle = LoginThrottle("memory://", max_attempts=1, lock_seconds=60)
        throttle.consume("a@acme.io")
        assert throttle.retry_after("a@acme.io") > 0
        throttle.reset("a@acme.io")
        assert throttle.retry_after("a@acme.io") == 0


# ═══════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════

class TestCli:
    def test_create_admin(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "create-admin", "--first-name", "root", "--last-name", "admin",
            "--email", "root@acme.io", "--password", "Boot!strap9",
        ])
        assert result.exit_code == 0, result.output
        user = RegisteredUser.query.filter_by(email="root@acme.io").one()
        assert user.role == "Admin"
        assert user.has_password

    def test_create_admin_weak_password(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "create-admin", "--first-name", "root", "--last-name", "admin",
            "--email", "root@acme.io", "--password", "weak",
        ])
        assert result.exit_code != 0
        assert "Validation failed" in result.output
        assert RegisteredUser.query.count() == 0

    def test_init_db(self, app, ceo):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["init-db", "--drop"])
        assert result.exit_code == 0
        assert "Database initialised." in result.output
        assert RegisteredUser.query.count() == 0


# ═══════════════════════════════════════════════════════════════
# Config
# ═══════════════════════════════════════════════════════════════

def test_production_requires_database_url(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", None)
    with pytest.raises(RuntimeError, match="DATABASE_URL"):
        ProductionConfig()
