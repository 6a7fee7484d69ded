"""
Auth tests — password hashing, session tokens, login cookie, throttle.

Tests cover:
  - bcrypt hashing and the werkzeug hash fallback
  - JWT generation / verification / expiry
  - POST /auth/login, /auth/logout, GET /auth/me
  - Per-email login lockout after repeated failures
  - 401 vs 403 from the role decorators
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from werkzeug.security import generate_password_hash

from projecthub.models.enums import Role
from projecthub.services.jwt_service import decode_access_token, generate_access_token
from projecthub.utils.crypto import hash_password, verify_password

PASSWORD = "Str0ng!Pass"

LOGIN = "/api/v1/auth/login"
ME = "/api/v1/auth/me"


def _login(client, email, password=PASSWORD):
    return client.post(LOGIN, json={"email": email, "password": password})


# ═══════════════════════════════════════════════════════════════
# Password hashing
# ═══════════════════════════════════════════════════════════════

class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("S3cret!pw", rounds=4)
        assert hashed.startswith("$2b$")
        assert verify_password("S3cret!pw", hashed)
        assert not verify_password("wrong", hashed)

    def test_empty_hash_never_verifies(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "")

    def test_werkzeug_hash_accepted(self):
        hashed = generate_password_hash("Legacy!pw1")
        assert verify_password("Legacy!pw1", hashed)
        assert not verify_password("legacy!pw1", hashed)

    def test_overlong_password_never_verifies(self):
        hashed = hash_password("S3cret!pw", rounds=4)
        assert not verify_password("S3cret!pw" + "x" * 80, hashed)

    def test_overlong_password_not_hashed(self):
        with pytest.raises(ValueError):
            hash_password("Aa1!" + "x" * 80, rounds=4)


# ═══════════════════════════════════════════════════════════════
# Session tokens
# ═══════════════════════════════════════════════════════════════

class TestSessionToken:
    def test_claims(self, ceo):
        payload = decode_access_token(generate_access_token(ceo))
        assert payload["sub"] == str(ceo.id)
        assert payload["role"] == "CEO"
        assert payload["email"] == "ceo@acme.io"
        assert payload["first_name"] == "carl"
        assert payload["type"] == "access"
        assert payload["exp"] - payload["iat"] == 7200

    def test_expired_token_rejected(self, ceo):
        past = datetime.now(timezone.utc) - timedelta(hours=3)
        token = jwt.encode(
            {"sub": str(ceo.id), "role": "CEO", "type": "access",
             "iat": past, "exp": past + timedelta(hours=2)},
            "test-jwt-secret", algorithm="HS256",
        )
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_wrong_type_rejected(self, ceo):
        token = jwt.encode(
            {"sub": str(ceo.id), "role": "CEO", "type": "refresh"},
            "test-jwt-secret", algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token(token)


# ═══════════════════════════════════════════════════════════════
# Login / logout / me
# ═══════════════════════════════════════════════════════════════

class TestLogin:
    def test_login_sets_http_only_cookie(self, client, ceo):
        res = _login(client, "ceo@acme.io")
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert body["user"]["role"] == "CEO"
        assert "password_hash" not in body["user"]

        cookie = next(c for c in res.headers.getlist("Set-Cookie") if c.startswith("authToken="))
        assert "HttpOnly" in cookie
        assert "SameSite=Strict" in cookie
        assert "Max-Age=7200" in cookie

    def test_me_uses_cookie(self, client, team_lead):
        _login(client, "lead@acme.io")
        res = client.get(ME)
        assert res.status_code == 200
        user = res.get_json()["user"]
        assert user["id"] == team_lead.id
        assert user["role"] == "Team Lead"
        assert user["email"] == "lead@acme.io"

    def test_me_accepts_bearer(self, client, finance, auth_headers):
        res = client.get(ME, headers=auth_headers(finance))
        assert res.status_code == 200
        assert res.get_json()["user"]["role"] == "Finance"

    def test_logout_clears_session(self, client, ceo):
        _login(client, "ceo@acme.io")
        assert client.get(ME).status_code == 200
        res = client.post("/api/v1/auth/logout")
        assert res.status_code == 200
        assert client.get(ME).status_code == 401

    def test_missing_fields(self, client):
        res = client.post(LOGIN, json={"email": "ceo@acme.io"})
        assert res.status_code == 400
        assert res.get_json()["error"] == "Email and password are required"

    def test_wrong_password(self, client, ceo):
        res = _login(client, "ceo@acme.io", "Wrong!pass1")
        assert res.status_code == 401
        assert res.get_json()["error"] == "Invalid credentials"

    def test_unknown_email_same_message(self, client):
        res = _login(client, "ghost@acme.io")
        assert res.status_code == 401
        assert res.get_json()["error"] == "Invalid credentials"

    def test_signup_not_completed(self, client, make_user):
        make_user(Role.DEVELOPER, email="new@acme.io", password=None)
        res = _login(client, "new@acme.io", "Whatever!1")
        assert res.status_code == 401
        assert res.get_json()["error"] == "Account not fully set up. Please complete sign-up."

    def test_overlong_password_is_invalid_credentials(self, client, ceo):
        res = _login(client, "ceo@acme.io", "Aa1!" + "x" * 80)
        assert res.status_code == 401
        assert res.get_json()["error"] == "Invalid credentials"

    def test_non_string_password(self, client, ceo):
        res = client.post(LOGIN, json={"email": "ceo@acme.io", "password": 12345678})
        assert res.status_code == 400
        assert res.get_json()["details"] == {"password": "must be a string"}

    def test_array_body(self, client):
        res = client.post(LOGIN, json=["ceo@acme.io", PASSWORD])
        assert res.status_code == 400
        assert res.get_json()["error"] == "Request body must be a JSON object"


# ═══════════════════════════════════════════════════════════════
# Login throttle
# ═══════════════════════════════════════════════════════════════

class TestLoginThrottle:
    def test_locks_after_three_failures(self, client, ceo):
        for _ in range(3):
            assert _login(client, "ceo@acme.io", "Wrong!pass1").status_code == 401

        res = _login(client, "ceo@acme.io")
        assert res.status_code == 429
        body = res.get_json()
        assert body["code"] == "ERR_RATE_LIMITED"
        assert 0 < body["retry_after"] <= 900

    def test_lock_is_per_email(self, client, ceo, finance):
        for _ in range(3):
            _login(client, "ceo@acme.io", "Wrong!pass1")
        assert _login(client, "finance@acme.io").status_code == 200

    def test_unknown_email_counts(self, client):
        for _ in range(3):
            _login(client, "ghost@acme.io")
        assert _login(client, "ghost@acme.io").status_code == 429

    def test_overlong_password_counts(self, client, ceo):
        for _ in range(3):
            assert _login(client, "ceo@acme.io", "Aa1!" + "x" * 80).status_code == 401
        assert _login(client, "ceo@acme.io").status_code == 429

    def test_success_resets_counter(self, client, ceo):
        _login(client, "ceo@acme.io", "Wrong!pass1")
        _login(client, "ceo@acme.io", "Wrong!pass1")
        assert _login(client, "ceo@acme.io").status_code == 200
        _login(client, "ceo@acme.io", "Wrong!pass1")
        _login(client, "ceo@acme.io", "Wrong!pass1")
        assert _login(client, "ceo@acme.io").status_code == 200


# ═══════════════════════════════════════════════════════════════
# Route protection
# ═══════════════════════════════════════════════════════════════

class TestRouteProtection:
    def test_no_session_is_401(self, client):
        res = client.get("/api/v1/projects")
        assert res.status_code == 401
        assert res.get_json()["error"] == "Not authenticated"

    def test_bad_token_is_401(self, client):
        res = client.get("/api/v1/projects", headers={"Authorization": "Bearer not-a-jwt"})
        assert res.status_code == 401
        assert res.get_json()["error"] == "Session expired or invalid"

    def test_expired_cookie_is_401(self, client, ceo):
        past = datetime.now(timezone.utc) - timedelta(hours=3)
        token = jwt.encode(
            {"sub": str(ceo.id), "role": "CEO", "type": "access",
             "iat": past, "exp": past + timedelta(hours=2)},
            "test-jwt-secret", algorithm="HS256",
        )
        client.set_cookie("authToken", token)
        res = client.get("/api/v1/projects")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_SESSION_INVALID"

    def test_wrong_role_is_403(self, client, developer, auth_headers):
        res = client.get("/api/v1/projects/pending", headers=auth_headers(developer))
        assert res.status_code == 403
        assert res.get_json()["code"] == "ERR_FORBIDDEN"
