"""Role-based access control for organization members."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

# Resource -> actions that may be granted on it.
STATEMENTS: dict[str, tuple[str, ...]] = {
    "organization": ("update", "delete"),
    "member": ("create", "update", "delete"),
    "invitation": ("create", "cancel"),
    "church_member": ("read", "update"),
    "milestone": ("create", "read", "update", "delete"),
}

StatementsInput = Mapping[str, Iterable[str]]

ROLES: dict[str, dict[str, tuple[str, ...]]] = {
    "owner": dict(STATEMENTS),
    "admin": {**STATEMENTS, "organization": ("update",)},
    "member": {
        "church_member": ("read",),
        "milestone": ("read",),
    },
}


def role_names(role: str) -> list[str]:
    """Split a stored role value ("admin,member") into its role names."""
    return [r.strip() for r in role.split(",") if r.strip()]


def has_permission(role: str, statements: StatementsInput) -> bool:
    """Return True if ``role`` grants every requested action.

    Each action may be granted by any one of the member's roles. Unknown
    roles, resources and actions grant nothing.
    """
    grants = [ROLES[name] for name in role_names(role) if name in ROLES]
    if not grants:
        return False
    for resource, actions in statements.items():
        for action in actions:
            if not any(action in grant.get(resource, ()) for grant in grants):
                return False
    return True
