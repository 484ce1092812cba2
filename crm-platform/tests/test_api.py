"""
API tests.

The application runs without its lifespan (the TestClient is not entered as a
context manager), so no Supabase client is created; collaborators are
replaced through `app.dependency_overrides`.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient

from api.dependencies import get_identity_provider, get_insights_client, get_settings_store, get_store
from api.main import app
from domain.branding import AppSettings
from domain.session import ACCOUNT_DISABLED, PENDING_VALIDATION, PROFILE_NOT_FOUND
from domain.user import UserProfile, UserRole, UserStatus
from repositories import user_repository
from services.insights_service import NO_ANALYSIS_MESSAGE, InsightsClient
from services.settings_service import SettingsStore

PAUL = {
    "full_name": "Paul Durand",
    "phone": "0102030405",
    "country_code": "+225",
    "country": "Côte d'Ivoire",
    "city": "Abidjan",
    "email": "paul.durand@example.com",
    "source": "Referral",
    "product_of_interest": "Pack Enterprise",
}


@pytest.fixture
def settings_store(store) -> SettingsStore:
    return SettingsStore(store, defaults=AppSettings(name="AFTRAS CRM", currency="FCFA"))


@pytest.fixture
def client(store, identity_provider, settings_store):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_settings_store] = lambda: settings_store
    app.dependency_overrides[get_insights_client] = lambda: InsightsClient(None)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(store, identity_provider):
    """Insert a profile and return bearer headers for it."""

    def _make(user_id: str, role: UserRole, status: UserStatus = UserStatus.ACTIVE) -> dict:
        profile = UserProfile(
            user_id=user_id,
            first_name=user_id.title(),
            last_name="Test",
            email=f"{user_id}@example.com",
            role=role,
            status=status,
            created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        )
        asyncio.run(user_repository.insert_user(store, profile))
        return {"Authorization": f"Bearer {identity_provider.issue_token(user_id)}"}

    return _make


@pytest.fixture
def admin(make_user) -> dict:
    return make_user("admin", UserRole.ADMIN)


@pytest.fixture
def agent(make_user) -> dict:
    return make_user("agent-1", UserRole.AGENT)


def _convert(client: TestClient, headers: dict) -> dict:
    prospect = client.post("/api/v1/prospects", json=PAUL, headers=headers).json()
    response = client.post(f"/api/v1/prospects/{prospect['prospect_id']}/convert", headers=headers)
    assert response.status_code == 200
    return response.json()


# ------------------------------------------------------------------- basics


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_missing_or_unknown_token_is_401(client) -> None:
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_pending_profile_is_denied_with_reason(client, make_user) -> None:
    headers = make_user("new-agent", UserRole.AGENT, UserStatus.PENDING)

    response = client.get("/api/v1/auth/me", headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"] == PENDING_VALIDATION


def test_identity_without_profile_is_denied(client, identity_provider) -> None:
    headers = {"Authorization": f"Bearer {identity_provider.issue_token('ghost')}"}

    response = client.get("/api/v1/auth/me", headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"] == PROFILE_NOT_FOUND


def test_me_lists_agent_views(client, agent) -> None:
    body = client.get("/api/v1/auth/me", headers=agent).json()

    assert body["views"][0] == "dashboard"
    assert "prospecting" in body["views"]
    assert "users" not in body["views"]
    assert body["read_only"] is False


# ------------------------------------------------------------- registration


def test_registration_flow(client, admin, identity_provider) -> None:
    code = client.post("/api/v1/access-code", headers=admin).json()["code"]

    registered = client.post(
        "/api/v1/auth/register",
        json={
            "email": "awa@example.com",
            "password": "s3cret-pass",
            "first_name": "Awa",
            "last_name": "Kone",
            "access_code": code,
        },
    )
    assert registered.status_code == 201
    assert registered.json()["status"] == "PENDING"

    denied = client.post("/api/v1/auth/login", json={"email": "awa@example.com", "password": "s3cret-pass"})
    assert denied.status_code == 403
    assert identity_provider.logouts == 1

    user_id = registered.json()["user_id"]
    activated = client.put(f"/api/v1/users/{user_id}/status", json={"status": "ACTIVE"}, headers=admin)
    assert activated.status_code == 200

    admitted = client.post("/api/v1/auth/login", json={"email": "awa@example.com", "password": "s3cret-pass"})
    assert admitted.status_code == 200
    assert admitted.json()["user"]["role"] == "AGENT"


def test_registration_with_wrong_code_is_rejected(client, admin) -> None:
    client.post("/api/v1/access-code", headers=admin)

    response = client.post(
        "/api/v1/auth/register",
        json={
            "email": "awa@example.com",
            "password": "s3cret-pass",
            "first_name": "Awa",
            "last_name": "Kone",
            "access_code": "CRM-0000-1999",
        },
    )

    assert response.status_code == 400


# ---------------------------------------------------------------- lifecycle


def test_prospect_to_sale(client, admin, agent) -> None:
    conversion = _convert(client, agent)
    client_id = conversion["client"]["client_id"]
    assert conversion["prospect"]["status"] == "CONVERTED"

    sale = client.post(
        "/api/v1/sales",
        json={"client_id": client_id, "revenue": 500000, "real_cost": 350000},
        headers=admin,
    )

    assert sale.status_code == 201
    assert sale.json()["profit"] == "150000"
    assert sale.json()["commission"] == "22500"
    assert sale.json()["client_name"] == "Paul Durand"

    again = client.post(
        "/api/v1/sales",
        json={"client_id": client_id, "revenue": 1, "real_cost": 0},
        headers=admin,
    )
    assert again.status_code == 409

    summary = client.get("/api/v1/commissions/summary", headers=agent).json()
    assert summary["pending"] == "22500"


def test_double_conversion_is_a_conflict(client, agent) -> None:
    conversion = _convert(client, agent)

    response = client.post(f"/api/v1/prospects/{conversion['prospect']['prospect_id']}/convert", headers=agent)

    assert response.status_code == 409


def test_agent_cannot_conclude_sale(client, agent) -> None:
    conversion = _convert(client, agent)

    response = client.post(
        "/api/v1/sales",
        json={"client_id": conversion["client"]["client_id"], "revenue": 10, "real_cost": 5},
        headers=agent,
    )

    assert response.status_code == 403


def test_agents_only_see_their_own_prospects(client, agent, make_user) -> None:
    other = make_user("agent-2", UserRole.AGENT)
    created = client.post("/api/v1/prospects", json=PAUL, headers=agent).json()

    assert client.get(f"/api/v1/prospects/{created['prospect_id']}", headers=other).status_code == 403
    assert client.get("/api/v1/prospects", headers=other).json() == []
    assert len(client.get("/api/v1/prospects?agent_id=agent-1", headers=other).json()) == 0


def test_supervisor_is_read_only(client, agent, make_user) -> None:
    supervisor = make_user("sup", UserRole.SUPERVISOR)
    client.post("/api/v1/prospects", json=PAUL, headers=agent)

    assert len(client.get("/api/v1/prospects", headers=supervisor).json()) == 1
    assert client.post("/api/v1/prospects", json=PAUL, headers=supervisor).status_code == 403
    assert client.get("/api/v1/auth/me", headers=supervisor).json()["read_only"] is True


def test_cancelling_client_notifies_agent(client, admin, agent) -> None:
    conversion = _convert(client, agent)

    cancelled = client.post(
        f"/api/v1/clients/{conversion['client']['client_id']}/cancel",
        json={"reason": "Duplicate record"},
        headers=admin,
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "CANCELLED"

    notifications = client.get("/api/v1/notifications", headers=agent).json()
    assert [n["title"] for n in notifications] == ["Client record deleted"]
    assert "Duplicate record" in notifications[0]["message"]

    assert client.post("/api/v1/notifications/mark-all-read", headers=agent).json() == {"updated": 1}


# ------------------------------------------------------------ remote leads


def test_public_capture_and_confirm(client, agent, make_user) -> None:
    make_user("pending-agent", UserRole.AGENT, UserStatus.PENDING)

    assert client.post("/api/v1/public/agents/nobody/leads", json=PAUL).status_code == 404
    assert client.post("/api/v1/public/agents/pending-agent/leads", json=PAUL).status_code == 404

    captured = client.post("/api/v1/public/agents/agent-1/leads", json=PAUL)
    assert captured.status_code == 201

    inbox = client.get("/api/v1/remote-prospects", headers=agent).json()
    assert [r["details"]["full_name"] for r in inbox] == ["Paul Durand"]

    confirmed = client.post(f"/api/v1/remote-prospects/{inbox[0]['remote_prospect_id']}/confirm", headers=agent)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "PENDING"
    assert client.get("/api/v1/remote-prospects", headers=agent).json() == []


# ------------------------------------------------------------ misc surfaces


def test_settings_are_public_and_admin_managed(client, admin, agent) -> None:
    assert client.get("/api/v1/settings").json()["name"] == "AFTRAS CRM"

    assert client.put("/api/v1/settings", json={"name": "Kora", "currency": "EUR"}, headers=agent).status_code == 403

    updated = client.put("/api/v1/settings", json={"name": "Kora", "currency": "EUR"}, headers=admin)
    assert updated.status_code == 200
    assert client.get("/api/v1/settings").json()["currency"] == "EUR"


def test_insights_fall_back_without_key(client, admin) -> None:
    response = client.post("/api/v1/dashboard/insights", headers=admin)

    assert response.status_code == 200
    assert response.json()["text"] == NO_ANALYSIS_MESSAGE


def test_agent_dashboard(client, agent) -> None:
    client.post("/api/v1/prospects", json=PAUL, headers=agent)

    stats = client.get("/api/v1/dashboard/agent", headers=agent).json()

    assert stats["prospects"] == 1
    assert stats["pending_prospects"] == 1


# ------------------------------------------------------------------ sign-out


def test_logout_requires_a_bearer_token(client, identity_provider) -> None:
    assert client.post("/api/v1/auth/logout").status_code == 401
    assert identity_provider.logouts == 0


def test_logout_only_revokes_the_callers_token(client, agent, make_user, identity_provider) -> None:
    other = make_user("agent-2", UserRole.AGENT)

    response = client.post("/api/v1/auth/logout", headers=agent)

    assert response.status_code == 204
    assert identity_provider.revoked == [agent["Authorization"].split()[1]]
    assert client.get("/api/v1/auth/me", headers=agent).status_code == 401
    assert client.get("/api/v1/auth/me", headers=other).status_code == 200


# ------------------------------------------------------------ session stream


def test_session_stream_rejects_unknown_token(client) -> None:
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect("/api/v1/session/stream?access_token=nope"):
            pass

    assert excinfo.value.code == 1008


def test_session_stream_admits_then_follows_profile(client, store, agent) -> None:
    with client.websocket_connect("/api/v1/session/stream", headers=agent) as ws:
        assert ws.receive_json()["status"] == "RESOLVING"
        admitted = ws.receive_json()
        assert admitted["status"] == "ADMITTED"
        assert admitted["user"]["user_id"] == "agent-1"

        profile = asyncio.run(user_repository.get_user_by_id(store, "agent-1"))
        asyncio.run(user_repository.save_user(store, profile.with_status(UserStatus.DISABLED)))

        denied = ws.receive_json()
        assert denied["status"] == "DENIED"
        assert denied["reason"] == ACCOUNT_DISABLED


def test_session_stream_sign_out_releases_subscriptions(client, store, agent) -> None:
    token = agent["Authorization"].split()[1]

    with client.websocket_connect(f"/api/v1/session/stream?access_token={token}") as ws:
        ws.receive_json()
        assert ws.receive_json()["status"] == "ADMITTED"
        assert store.listener_count("users", "agent-1") == 1

        ws.send_text("sign_out")

        assert ws.receive_json()["status"] == "UNAUTHENTICATED"
        with pytest.raises(WebSocketDisconnect):
            ws.receive_json()

    assert store.listener_count("users", "agent-1") == 0
