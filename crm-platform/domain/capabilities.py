"""
Role -> capability map.

Roles are presets only: every authorization decision at the API boundary is a
capability check. The lifecycle engine itself is role-agnostic.

- ADMIN: everything.
- SUPERVISOR: read-only view of everything an admin sees.
- AGENT: its own prospects, remote leads, clients, commissions and notifications.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List

from .user import UserRole


class Capability(str, Enum):
    DASHBOARD_VIEW = "dashboard.view"
    INSIGHTS_GENERATE = "insights.generate"

    ACCESS_CODE_VIEW = "access_code.view"
    ACCESS_CODE_GENERATE = "access_code.generate"

    USERS_VIEW = "users.view"
    USERS_MANAGE = "users.manage"
    PROFILE_EDIT_OWN = "profile.edit_own"

    PROSPECTS_VIEW_ALL = "prospects.view_all"
    PROSPECTS_MANAGE_ALL = "prospects.manage_all"
    PROSPECTS_MANAGE_OWN = "prospects.manage_own"
    REMOTE_PROSPECTS_MANAGE_OWN = "remote_prospects.manage_own"

    CLIENTS_VIEW_ALL = "clients.view_all"
    CLIENTS_VIEW_OWN = "clients.view_own"
    CLIENTS_CANCEL = "clients.cancel"

    SALES_VIEW_ALL = "sales.view_all"
    SALES_CONCLUDE = "sales.conclude"
    SALES_CORRECT = "sales.correct"
    COMMISSIONS_SETTLE = "commissions.settle"
    COMMISSIONS_VIEW_OWN = "commissions.view_own"

    NOTIFICATIONS_VIEW_ALL = "notifications.view_all"
    NOTIFICATIONS_VIEW_OWN = "notifications.view_own"

    SETTINGS_MANAGE = "settings.manage"


_SUPERVISOR_CAPABILITIES = frozenset({
    Capability.DASHBOARD_VIEW,
    Capability.INSIGHTS_GENERATE,
    Capability.ACCESS_CODE_VIEW,
    Capability.USERS_VIEW,
    Capability.PROSPECTS_VIEW_ALL,
    Capability.CLIENTS_VIEW_ALL,
    Capability.SALES_VIEW_ALL,
    Capability.NOTIFICATIONS_VIEW_ALL,
    Capability.NOTIFICATIONS_VIEW_OWN,
})

_AGENT_CAPABILITIES = frozenset({
    Capability.DASHBOARD_VIEW,
    Capability.PROFILE_EDIT_OWN,
    Capability.PROSPECTS_MANAGE_OWN,
    Capability.REMOTE_PROSPECTS_MANAGE_OWN,
    Capability.CLIENTS_VIEW_OWN,
    Capability.COMMISSIONS_VIEW_OWN,
    Capability.NOTIFICATIONS_VIEW_OWN,
})

ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.ADMIN: frozenset(Capability),
    UserRole.SUPERVISOR: _SUPERVISOR_CAPABILITIES,
    UserRole.AGENT: _AGENT_CAPABILITIES,
}

_ADMIN_VIEWS = [
    "dashboard",
    "access-code",
    "users",
    "prospects",
    "clients",
    "sales",
    "commissions",
    "notifications",
    "settings",
    "profile",
]

ROLE_VIEWS: Dict[UserRole, List[str]] = {
    UserRole.ADMIN: _ADMIN_VIEWS,
    UserRole.SUPERVISOR: _ADMIN_VIEWS,
    UserRole.AGENT: [
        "dashboard",
        "prospecting",
        "remote-form",
        "my-clients",
        "my-commissions",
        "notifications",
        "profile",
    ],
}


def has_capability(role: UserRole, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def views_for(role: UserRole) -> List[str]:
    return list(ROLE_VIEWS.get(role, []))


def is_read_only(role: UserRole) -> bool:
    return role == UserRole.SUPERVISOR
