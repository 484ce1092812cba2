"""
Tests for `services/lifecycle_service.py`.

Runs the engine against the in-memory store and checks the persisted records,
not just the returned values.
"""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest

from domain.client import ClientStatus
from domain.errors import (
    InvalidTransitionError,
    NotFoundError,
    NotificationDispatchError,
    StoreError,
    ValidationError,
)
from domain.notification import NotificationType
from domain.prospect import LeadDetails, ProspectStatus
from domain.sale import SaleStatus
from services.lifecycle_service import LifecycleEngine


def _paul() -> LeadDetails:
    return LeadDetails(
        full_name="Paul Durand",
        phone="0102030405",
        country_code="+225",
        country="Côte d'Ivoire",
        city="Abidjan",
        email="paul.durand@example.com",
        source="Referral",
        product_of_interest="Pack Enterprise",
    )


@pytest.fixture
def engine(store, clock) -> LifecycleEngine:
    return LifecycleEngine(store, clock=clock, notification_attempts=3, retry_delay=0)


async def _client_for(engine: LifecycleEngine, agent_id: str = "agent-1"):
    prospect = await engine.create_prospect(agent_id, _paul())
    return (await engine.convert_prospect(prospect.prospect_id)).client


# ---------------------------------------------------------------- prospects


@pytest.mark.asyncio
async def test_create_prospect_is_pending_and_timestamped(engine, store, clock) -> None:
    prospect = await engine.create_prospect("agent-1", _paul())

    assert prospect.status == ProspectStatus.PENDING
    assert prospect.created_at == clock.now
    row = store.collections["prospects"][prospect.prospect_id]
    assert row["status"] == "PENDING"
    assert row["agent_id"] == "agent-1"
    assert row["full_name"] == "Paul Durand"


@pytest.mark.asyncio
async def test_paul_durand_conversion_scenario(engine, store) -> None:
    prospect = await engine.create_prospect("agent-1", _paul())

    result = await engine.convert_prospect(prospect.prospect_id)

    assert result.prospect.status == ProspectStatus.CONVERTED
    assert store.collections["prospects"][prospect.prospect_id]["status"] == "CONVERTED"
    client = result.client
    assert client.status == ClientStatus.PENDING
    assert client.prospect_id == prospect.prospect_id
    assert client.agent_id == "agent-1"
    assert client.full_name == "Paul Durand"
    assert client.phone == "0102030405"
    assert client.product == "Pack Enterprise"
    assert len(store.collections["clients"]) == 1


@pytest.mark.asyncio
async def test_second_conversion_is_rejected_without_a_duplicate_client(engine, store) -> None:
    prospect = await engine.create_prospect("agent-1", _paul())
    await engine.convert_prospect(prospect.prospect_id)

    with pytest.raises(InvalidTransitionError):
        await engine.convert_prospect(prospect.prospect_id)

    assert len(store.collections["clients"]) == 1


@pytest.mark.asyncio
async def test_convert_missing_prospect_is_not_found(engine) -> None:
    with pytest.raises(NotFoundError):
        await engine.convert_prospect("nope")


@pytest.mark.asyncio
async def test_conversion_rolls_back_client_when_prospect_write_fails(engine, store) -> None:
    prospect = await engine.create_prospect("agent-1", _paul())
    store.fail_next("update", "prospects")

    with pytest.raises(StoreError):
        await engine.convert_prospect(prospect.prospect_id)

    assert store.collections["clients"] == {}
    assert store.collections["prospects"][prospect.prospect_id]["status"] == "PENDING"


@pytest.mark.asyncio
async def test_update_prospect_only_while_pending(engine) -> None:
    prospect = await engine.create_prospect("agent-1", _paul())

    updated = await engine.update_prospect(prospect.prospect_id, {"city": "Yamoussoukro"})
    assert updated.details.city == "Yamoussoukro"

    await engine.convert_prospect(prospect.prospect_id)
    with pytest.raises(InvalidTransitionError):
        await engine.update_prospect(prospect.prospect_id, {"city": "Abidjan"})


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["status", "agent_id", "created_at", "id"])
async def test_engine_owned_prospect_fields_are_not_editable(engine, field) -> None:
    prospect = await engine.create_prospect("agent-1", _paul())

    with pytest.raises(ValidationError):
        await engine.update_prospect(prospect.prospect_id, {field: "x"})


@pytest.mark.asyncio
async def test_delete_prospect_only_while_pending(engine, store) -> None:
    kept = await engine.create_prospect("agent-1", _paul())
    dropped = await engine.create_prospect("agent-1", _paul())

    await engine.delete_prospect(dropped.prospect_id)
    assert dropped.prospect_id not in store.collections["prospects"]

    await engine.convert_prospect(kept.prospect_id)
    with pytest.raises(InvalidTransitionError):
        await engine.delete_prospect(kept.prospect_id)
    assert kept.prospect_id in store.collections["prospects"]


@pytest.mark.asyncio
async def test_list_prospects_by_agent(engine) -> None:
    await engine.create_prospect("agent-1", _paul())
    await engine.create_prospect("agent-2", _paul())

    assert len(await engine.list_prospects()) == 2
    assert [p.agent_id for p in await engine.list_prospects("agent-2")] == ["agent-2"]


# -------------------------------------------------------------------- sales


@pytest.mark.asyncio
async def test_conclude_sale_scenario(engine, store) -> None:
    client = await _client_for(engine)

    result = await engine.conclude_sale(client.client_id, 500000, 350000)

    sale = result.sale
    assert sale.amount == Decimal("500000")
    assert sale.profit == Decimal("150000")
    assert sale.commission == Decimal("22500")
    assert sale.status == SaleStatus.PENDING
    assert sale.agent_id == "agent-1"
    assert result.client.status == ClientStatus.SALE_CONCLUDED
    assert store.collections["clients"][client.client_id]["status"] == "SALE_CONCLUDED"
    assert store.collections["sales"][sale.sale_id]["commission"] == "22500"


@pytest.mark.asyncio
async def test_correct_sale_scenario_keeps_status(engine, store) -> None:
    client = await _client_for(engine)
    sale = (await engine.conclude_sale(client.client_id, 500000, 350000)).sale

    corrected = await engine.correct_sale(sale.sale_id, 600000, 350000)

    assert corrected.profit == Decimal("250000")
    assert corrected.commission == Decimal("37500")
    assert corrected.status == SaleStatus.PENDING
    stored = await engine.get_sale(sale.sale_id)
    assert stored.profit == Decimal("250000")
    assert stored.commission == Decimal("37500")


@pytest.mark.asyncio
async def test_correcting_a_paid_sale_keeps_it_paid(engine) -> None:
    client = await _client_for(engine)
    sale = (await engine.conclude_sale(client.client_id, 500000, 350000)).sale
    await engine.settle_commission(sale.sale_id)

    corrected = await engine.correct_sale(sale.sale_id, 400000, 350000)

    assert corrected.status == SaleStatus.PAID
    assert corrected.commission == Decimal("7500")


@pytest.mark.asyncio
async def test_only_one_sale_per_client(engine, store) -> None:
    client = await _client_for(engine)
    await engine.conclude_sale(client.client_id, 500000, 350000)

    with pytest.raises(InvalidTransitionError):
        await engine.conclude_sale(client.client_id, 100, 50)

    assert len(store.collections["sales"]) == 1


@pytest.mark.asyncio
async def test_sale_on_cancelled_client_is_rejected(engine) -> None:
    client = await _client_for(engine)
    await engine.cancel_client(client.client_id, "Fraud suspicion")

    with pytest.raises(InvalidTransitionError):
        await engine.conclude_sale(client.client_id, 500000, 350000)


@pytest.mark.asyncio
async def test_conclude_sale_rolls_back_when_client_write_fails(engine, store) -> None:
    client = await _client_for(engine)
    store.fail_next("update", "clients")

    with pytest.raises(StoreError):
        await engine.conclude_sale(client.client_id, 500000, 350000)

    assert store.collections["sales"] == {}
    assert store.collections["clients"][client.client_id]["status"] == "PENDING"


@pytest.mark.asyncio
async def test_conclude_sale_for_unknown_client(engine) -> None:
    with pytest.raises(NotFoundError):
        await engine.conclude_sale("missing", 1, 1)


@pytest.mark.asyncio
async def test_settle_commission_is_one_way(engine) -> None:
    client = await _client_for(engine)
    sale = (await engine.conclude_sale(client.client_id, 500000, 350000)).sale

    paid = await engine.settle_commission(sale.sale_id)
    assert paid.status == SaleStatus.PAID

    with pytest.raises(InvalidTransitionError):
        await engine.settle_commission(sale.sale_id)


# ------------------------------------------------------------ cancellation


@pytest.mark.asyncio
async def test_cancel_client_notifies_owning_agent_once(engine, store) -> None:
    client = await _client_for(engine, agent_id="agent-7")

    result = await engine.cancel_client(client.client_id, "Customer withdrew")

    assert result.client.status == ClientStatus.CANCELLED
    assert result.client.deletion_reason == "Customer withdrew"
    notifications = store.rows("notifications")
    assert len(notifications) == 1
    note = notifications[0]
    assert note["user_id"] == "agent-7"
    assert note["type"] == NotificationType.ALERT.value
    assert note["read"] is False
    assert "Paul Durand" in note["message"]
    assert "Customer withdrew" in note["message"]


@pytest.mark.asyncio
async def test_cancel_client_requires_reason(engine, store) -> None:
    client = await _client_for(engine)

    with pytest.raises(ValidationError):
        await engine.cancel_client(client.client_id, "   ")

    assert store.collections["clients"][client.client_id]["status"] == "PENDING"
    assert store.rows("notifications") == []


@pytest.mark.asyncio
async def test_cancelled_clients_are_hidden_by_default(engine) -> None:
    client = await _client_for(engine)
    await engine.cancel_client(client.client_id, "Duplicate")

    assert await engine.list_clients() == []
    assert [c.client_id for c in await engine.list_clients(include_cancelled=True)] == [client.client_id]


@pytest.mark.asyncio
async def test_cancel_retries_notification_then_succeeds(engine, store) -> None:
    client = await _client_for(engine)
    store.fail_next("upsert", "notifications", times=2)

    await engine.cancel_client(client.client_id, "Duplicate")

    assert len(store.rows("notifications")) == 1


@pytest.mark.asyncio
async def test_cancel_reports_partial_failure_when_notification_is_lost(engine, store) -> None:
    client = await _client_for(engine)
    store.fail_next("upsert", "notifications", times=3)

    with pytest.raises(NotificationDispatchError) as excinfo:
        await engine.cancel_client(client.client_id, "Duplicate")

    # The cancellation itself is committed.
    assert store.collections["clients"][client.client_id]["status"] == "CANCELLED"
    assert excinfo.value.notification is not None
    assert excinfo.value.notification.user_id == "agent-1"


# ---------------------------------------------------------- remote prospects


@pytest.mark.asyncio
async def test_confirm_remote_prospect_moves_the_lead(engine, store) -> None:
    remote = await engine.capture_remote_prospect("agent-1", _paul())
    assert remote.is_verified is False

    prospect = await engine.confirm_remote_prospect(remote.remote_prospect_id)

    assert prospect.status == ProspectStatus.PENDING
    assert prospect.agent_id == "agent-1"
    assert prospect.details == remote.details
    assert store.collections["remote_prospects"] == {}
    assert list(store.collections["prospects"]) == [prospect.prospect_id]


@pytest.mark.asyncio
async def test_confirm_rolls_back_when_remote_delete_fails(engine, store) -> None:
    remote = await engine.capture_remote_prospect("agent-1", _paul())
    store.fail_next("delete", "remote_prospects")

    with pytest.raises(StoreError):
        await engine.confirm_remote_prospect(remote.remote_prospect_id)

    assert store.collections["prospects"] == {}
    assert remote.remote_prospect_id in store.collections["remote_prospects"]


@pytest.mark.asyncio
async def test_discard_remote_prospect(engine, store) -> None:
    remote = await engine.capture_remote_prospect("agent-1", _paul())

    await engine.discard_remote_prospect(remote.remote_prospect_id)

    assert store.collections["remote_prospects"] == {}
    with pytest.raises(NotFoundError):
        await engine.discard_remote_prospect(remote.remote_prospect_id)


# ---------------------------------------------------------- failed rollbacks


def _orphan_records(caplog) -> list:
    return [r for r in caplog.records if r.levelno == logging.ERROR and "Compensation failed" in r.getMessage()]


@pytest.mark.asyncio
async def test_failed_client_rollback_is_logged_and_original_error_raised(engine, store, caplog) -> None:
    prospect = await engine.create_prospect("agent-1", _paul())
    store.fail_next("update", "prospects")
    store.fail_next("delete", "clients")

    with caplog.at_level(logging.ERROR, logger="services.lifecycle_service"):
        with pytest.raises(StoreError, match="Injected update failure on 'prospects'"):
            await engine.convert_prospect(prospect.prospect_id)

    (orphan_id,) = store.collections["clients"]
    (record,) = _orphan_records(caplog)
    assert record.client_id == orphan_id
    assert record.prospect_id == prospect.prospect_id
    assert "delete" in record.error


@pytest.mark.asyncio
async def test_failed_sale_rollback_is_logged_and_original_error_raised(engine, store, caplog) -> None:
    client = await _client_for(engine)
    store.fail_next("update", "clients")
    store.fail_next("delete", "sales")

    with caplog.at_level(logging.ERROR, logger="services.lifecycle_service"):
        with pytest.raises(StoreError, match="Injected update failure on 'clients'"):
            await engine.conclude_sale(client.client_id, 500000, 350000)

    (orphan_id,) = store.collections["sales"]
    (record,) = _orphan_records(caplog)
    assert record.sale_id == orphan_id
    assert record.client_id == client.client_id


@pytest.mark.asyncio
async def test_failed_prospect_rollback_is_logged_and_original_error_raised(engine, store, caplog) -> None:
    remote = await engine.capture_remote_prospect("agent-1", _paul())
    store.fail_next("delete", "remote_prospects")
    store.fail_next("delete", "prospects")

    with caplog.at_level(logging.ERROR, logger="services.lifecycle_service"):
        with pytest.raises(StoreError, match="remote_prospects"):
            await engine.confirm_remote_prospect(remote.remote_prospect_id)

    (orphan_id,) = store.collections["prospects"]
    (record,) = _orphan_records(caplog)
    assert record.prospect_id == orphan_id
    assert record.remote_prospect_id == remote.remote_prospect_id
