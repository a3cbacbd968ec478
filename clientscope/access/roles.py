"""Role capability groups.

Every permission check goes through :func:`has_capability`, so route
handlers never carry their own lists of role strings.
"""

from __future__ import annotations

from enum import StrEnum

from clientscope.types import Role


class Capability(StrEnum):
    BYPASS_CLIENT_SCOPE = "bypass_client_scope"
    VIEW_ADMIN_RESOURCES = "view_admin_resources"
    MANAGE_LEADS = "manage_leads"
    MANAGE_BILLING = "manage_billing"
    DELETE_RESOURCES = "delete_resources"
    RECEIVE_ADMIN_ALERTS = "receive_admin_alerts"


ELEVATED_ROLES: frozenset[Role] = frozenset({Role.CEO, Role.CFO, Role.ADMIN})

STAFF_ROLES: frozenset[Role] = ELEVATED_ROLES | {
    Role.FRONTEND,
    Role.BACKEND,
    Role.OUTREACH,
    Role.DESIGNER,
}

CAPABILITY_ROLES: dict[Capability, frozenset[Role]] = {
    Capability.BYPASS_CLIENT_SCOPE: ELEVATED_ROLES,
    Capability.VIEW_ADMIN_RESOURCES: STAFF_ROLES,
    Capability.MANAGE_LEADS: STAFF_ROLES,
    Capability.MANAGE_BILLING: ELEVATED_ROLES,
    Capability.DELETE_RESOURCES: ELEVATED_ROLES,
    Capability.RECEIVE_ADMIN_ALERTS: ELEVATED_ROLES,
}


def parse_role(value: str | None) -> Role | None:
    """Return the Role for a stored role string, or None when unknown."""
    if not value:
        return None
    try:
        return Role(value.upper())
    except ValueError:
        return None


def has_capability(role: str | None, capability: Capability) -> bool:
    """Check whether a role string grants a capability.

    Unknown and missing roles grant nothing.
    """
    parsed = parse_role(role)
    if parsed is None:
        return False
    return parsed in CAPABILITY_ROLES[capability]


def roles_with(capability: Capability) -> list[str]:
    """Role values holding a capability, sorted for stable SQL parameters."""
    return sorted(role.value for role in CAPABILITY_ROLES[capability])
