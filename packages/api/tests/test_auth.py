# This project was developed with assistance from AI tools.
"""Tests for gateway-header identity and role guards."""

from db.enums import UserRole
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from rentsphere.core.config import settings
from rentsphere.middleware.auth import CurrentUser, _resolve_role, require_roles


def _me_app():
    app = FastAPI()

    @app.get("/me")
    async def me(user: CurrentUser):
        return {"user_id": user.user_id, "role": user.role.value}

    return app


# ---------------------------------------------------------------------------
# AUTH_DISABLED bypass
# ---------------------------------------------------------------------------


def test_auth_disabled_returns_dev_admin(monkeypatch):
    """When AUTH_DISABLED=true, any request gets a dev admin user."""
    monkeypatch.setattr(settings, "AUTH_DISABLED", True)

    resp = TestClient(_me_app()).get("/me")
    assert resp.status_code == 200
    assert resp.json() == {"user_id": "dev-user", "role": "admin"}


# ---------------------------------------------------------------------------
# Identity headers
# ---------------------------------------------------------------------------


def test_missing_identity_returns_401(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get("/me")
    assert resp.status_code == 401
    assert "Missing caller identity" in resp.json()["detail"]


def test_blank_identity_returns_401(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get("/me", headers={"X-User-Id": "   "})
    assert resp.status_code == 401


def test_headers_build_user_context(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_me_app()).get(
        "/me", headers={"X-User-Id": "renter-raj", "X-User-Role": "Admin"}
    )
    assert resp.json() == {"user_id": "renter-raj", "role": "admin"}


def test_resolve_role_defaults_to_member():
    assert _resolve_role(None) == UserRole.MEMBER
    assert _resolve_role("") == UserRole.MEMBER


def test_resolve_role_unknown_value_is_member():
    assert _resolve_role("superuser") == UserRole.MEMBER


# ---------------------------------------------------------------------------
# require_roles
# ---------------------------------------------------------------------------


def _guarded_app():
    app = FastAPI()

    @app.get("/admin-only", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    async def admin_only():
        return {"ok": True}

    return app


def test_require_roles_allows_admin(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_guarded_app()).get(
        "/admin-only", headers={"X-User-Id": "admin-ada", "X-User-Role": "admin"}
    )
    assert resp.status_code == 200


def test_require_roles_rejects_member(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_DISABLED", False)

    resp = TestClient(_guarded_app()).get("/admin-only", headers={"X-User-Id": "renter-raj"})
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Insufficient permissions"
