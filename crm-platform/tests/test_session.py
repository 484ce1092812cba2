"""
Tests for `domain/session.py`, `domain/access_code.py` and `domain/capabilities.py`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from domain.access_code import AccessCode
from domain.capabilities import Capability, has_capability, is_read_only, views_for
from domain.session import (
    ACCOUNT_DISABLED,
    PENDING_VALIDATION,
    PROFILE_NOT_FOUND,
    SessionStatus,
    resolve_session,
)
from domain.user import UserProfile, UserRole, UserStatus

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _profile(status: UserStatus, role: UserRole = UserRole.AGENT) -> UserProfile:
    return UserProfile(
        user_id="u-1",
        first_name="Awa",
        last_name="Kone",
        email="awa@example.com",
        role=role,
        status=status,
        created_at=NOW,
    )


def test_active_profile_is_admitted() -> None:
    state = resolve_session("u-1", _profile(UserStatus.ACTIVE))

    assert state.status == SessionStatus.ADMITTED
    assert state.is_admitted
    assert state.profile is not None and state.profile.user_id == "u-1"


@pytest.mark.parametrize(
    "status, reason",
    [(UserStatus.PENDING, PENDING_VALIDATION), (UserStatus.DISABLED, ACCOUNT_DISABLED)],
)
def test_inactive_profiles_are_denied_with_distinct_reasons(status, reason) -> None:
    state = resolve_session("u-1", _profile(status))

    assert state.status == SessionStatus.DENIED
    assert state.reason == reason
    assert state.profile is None


def test_missing_profile_is_denied() -> None:
    state = resolve_session("u-1", None)

    assert state.status == SessionStatus.DENIED
    assert state.reason == PROFILE_NOT_FOUND


def test_access_code_accepts_exact_match_until_expiry() -> None:
    code = AccessCode(code="CRM-1234-2025", expires_at=NOW + timedelta(hours=24))

    assert code.accepts("CRM-1234-2025", NOW)
    assert code.accepts("CRM-1234-2025", NOW + timedelta(hours=24))
    assert not code.accepts("CRM-1234-2025", NOW + timedelta(hours=24, seconds=1))
    assert not code.accepts("CRM-1234", NOW)
    assert not code.accepts("crm-1234-2025", NOW)


def test_inactive_access_code_is_rejected() -> None:
    code = AccessCode(code="CRM-1234-2025", expires_at=NOW + timedelta(hours=1), is_active=False)

    assert not code.accepts("CRM-1234-2025", NOW)


def test_supervisor_is_read_only() -> None:
    assert is_read_only(UserRole.SUPERVISOR)
    assert has_capability(UserRole.SUPERVISOR, Capability.SALES_VIEW_ALL)
    assert not has_capability(UserRole.SUPERVISOR, Capability.SALES_CONCLUDE)
    assert not has_capability(UserRole.SUPERVISOR, Capability.CLIENTS_CANCEL)
    assert views_for(UserRole.SUPERVISOR) == views_for(UserRole.ADMIN)


def test_agent_cannot_settle_or_conclude() -> None:
    assert has_capability(UserRole.AGENT, Capability.PROSPECTS_MANAGE_OWN)
    assert not has_capability(UserRole.AGENT, Capability.COMMISSIONS_SETTLE)
    assert not has_capability(UserRole.AGENT, Capability.SALES_CONCLUDE)
    assert "my-commissions" in views_for(UserRole.AGENT)


def test_admin_has_every_capability() -> None:
    assert all(has_capability(UserRole.ADMIN, c) for c in Capability)
