"""
Tests for the repository listings.

A record that does not parse (missing column, unknown enum value) is skipped
with a warning so one bad row never hides the rest of a listing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from domain.notification import Notification, NotificationType
from domain.prospect import LeadDetails
from domain.user import UserProfile, UserRole, UserStatus
from repositories import client_repository, notification_repository, prospect_repository, user_repository
from services.lifecycle_service import LifecycleEngine

CREATED = datetime(2025, 1, 1, tzinfo=timezone.utc)

LEAD = LeadDetails(
    full_name="Fatou Diallo",
    phone="771234567",
    country_code="+221",
    country="Senegal",
    city="Dakar",
    email="fatou.diallo@example.com",
    source="Website",
    product_of_interest="Pack Starter",
)


def _skipped(caplog, collection: str) -> list:
    return [
        r
        for r in caplog.records
        if r.levelno == logging.WARNING and r.name == "repositories.store" and r.collection == collection
    ]


@pytest.mark.asyncio
async def test_list_users_skips_malformed_rows(store, caplog) -> None:
    profile = UserProfile(
        user_id="agent-1",
        first_name="Awa",
        last_name="Kone",
        email="awa@example.com",
        role=UserRole.AGENT,
        status=UserStatus.ACTIVE,
        created_at=CREATED,
    )
    await user_repository.insert_user(store, profile)
    store.collections["users"]["broken"] = {"id": "broken", "email": "x@example.com", "role": "WIZARD"}

    with caplog.at_level(logging.WARNING, logger="repositories.store"):
        users = await user_repository.list_users(store)

    assert [u.user_id for u in users] == ["agent-1"]
    (record,) = _skipped(caplog, "users")
    assert record.record_id == "broken"


@pytest.mark.asyncio
async def test_prospect_listings_skip_malformed_rows(store, clock, caplog) -> None:
    engine = LifecycleEngine(store, clock=clock)
    prospect = await engine.create_prospect("agent-1", LEAD)
    remote = await engine.capture_remote_prospect("agent-1", LEAD)
    store.collections["prospects"]["broken"] = {"id": "broken", "agent_id": "agent-1", "status": "LOST"}
    store.collections["remote_prospects"]["broken"] = {"id": "broken", "agent_id": "agent-1"}

    with caplog.at_level(logging.WARNING, logger="repositories.store"):
        everyone = await prospect_repository.list_prospects(store)
        mine = await prospect_repository.list_prospects_by_agent(store, "agent-1")
        inbox = await prospect_repository.list_remote_prospects_by_agent(store, "agent-1")

    assert [p.prospect_id for p in everyone] == [prospect.prospect_id]
    assert [p.prospect_id for p in mine] == [prospect.prospect_id]
    assert [r.remote_prospect_id for r in inbox] == [remote.remote_prospect_id]
    assert len(_skipped(caplog, "prospects")) == 2
    assert len(_skipped(caplog, "remote_prospects")) == 1


@pytest.mark.asyncio
async def test_client_listings_skip_malformed_rows(store, clock, caplog) -> None:
    engine = LifecycleEngine(store, clock=clock)
    prospect = await engine.create_prospect("agent-1", LEAD)
    client = (await engine.convert_prospect(prospect.prospect_id)).client
    store.collections["clients"]["broken"] = {"id": "broken", "agent_id": "agent-1", "status": "ARCHIVED"}

    with caplog.at_level(logging.WARNING, logger="repositories.store"):
        listed = await client_repository.list_clients(store)
        by_agent = await client_repository.list_clients_by_agent(store, "agent-1")

    assert [c.client_id for c in listed] == [client.client_id]
    assert [c.client_id for c in by_agent] == [client.client_id]
    assert len(_skipped(caplog, "clients")) == 2


@pytest.mark.asyncio
async def test_notification_listings_skip_malformed_rows(store, caplog) -> None:
    notification = Notification(
        notification_id="n-1",
        user_id="agent-1",
        title="Welcome",
        message="Your account is active",
        type=NotificationType.SYS,
        created_at=CREATED,
    )
    await notification_repository.put_notification(store, notification)
    store.collections["notifications"]["broken"] = {"id": "broken", "user_id": "agent-1", "title": "?"}

    with caplog.at_level(logging.WARNING, logger="repositories.store"):
        mine = await notification_repository.list_notifications_by_user(store, "agent-1")

    assert [n.notification_id for n in mine] == ["n-1"]
    (record,) = _skipped(caplog, "notifications")
    assert record.record_id == "broken"
