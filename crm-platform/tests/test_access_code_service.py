"""
Tests for `services/access_code_service.py`.
"""

from __future__ import annotations

import re
from datetime import timedelta

import pytest

from domain.access_code import CURRENT_ACCESS_CODE_ID
from domain.errors import AccessCodeError
from services.access_code_service import AccessCodeGate


@pytest.fixture
def gate(store, clock) -> AccessCodeGate:
    return AccessCodeGate(store, clock=clock)


@pytest.mark.asyncio
async def test_generated_code_format_and_expiry(gate, clock) -> None:
    code = await gate.generate_code()

    assert re.fullmatch(r"CRM-\d{4}-2025", code.code)
    assert code.expires_at == clock.now + timedelta(hours=24)
    assert code.is_active


@pytest.mark.asyncio
async def test_code_validates_within_window(gate, clock) -> None:
    code = await gate.generate_code()

    clock.advance(timedelta(hours=23, minutes=59))
    assert await gate.validate_code(code.code)


@pytest.mark.asyncio
async def test_code_fails_after_expiry(gate, clock) -> None:
    code = await gate.generate_code()

    clock.advance(timedelta(hours=24, seconds=1))
    assert not await gate.validate_code(code.code)
    with pytest.raises(AccessCodeError, match="expired"):
        await gate.require_valid_code(code.code)


@pytest.mark.asyncio
async def test_regenerating_leaves_one_code_and_invalidates_the_old(gate, store, monkeypatch) -> None:
    codes = iter([1234, 5678])
    monkeypatch.setattr("services.access_code_service.secrets.randbelow", lambda _: next(codes) - 1000)

    first = await gate.generate_code()
    second = await gate.generate_code()

    assert first.code == "CRM-1234-2025"
    assert second.code == "CRM-5678-2025"
    assert list(store.collections["access_codes"]) == [CURRENT_ACCESS_CODE_ID]
    assert not await gate.validate_code(first.code)
    assert await gate.validate_code(second.code)


@pytest.mark.asyncio
async def test_stray_rows_are_removed_on_generation(gate, store) -> None:
    store.collections["access_codes"]["legacy"] = {
        "id": "legacy",
        "code": "CRM-0000-2024",
        "expires_at_utc": "2024-01-01T00:00:00+00:00",
        "is_active": True,
    }

    await gate.generate_code()

    assert list(store.collections["access_codes"]) == [CURRENT_ACCESS_CODE_ID]


@pytest.mark.asyncio
async def test_no_code_fails_closed(gate) -> None:
    assert not await gate.validate_code("")
    assert not await gate.validate_code("CRM-1234-2025")
    with pytest.raises(AccessCodeError):
        await gate.require_valid_code("CRM-1234-2025")


@pytest.mark.asyncio
@pytest.mark.parametrize("mutate", [str.lower, lambda c: c[:-1], lambda c: c + " ", lambda c: ""])
async def test_only_exact_match_is_accepted(gate, mutate) -> None:
    code = await gate.generate_code()

    assert not await gate.validate_code(mutate(code.code))
    with pytest.raises(AccessCodeError, match="Invalid"):
        await gate.require_valid_code(mutate(code.code))
