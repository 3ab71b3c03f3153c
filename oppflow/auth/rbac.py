"""Role-based authorization helpers."""

from __future__ import annotations

from collections.abc import Iterable

from oppflow.core.exceptions import AuthorizationError
from oppflow.models.enums import UserRole

# Scope strings are kept explicit for endpoint-level declarations.
ROLE_SCOPES: dict[UserRole, set[str]] = {
    UserRole.SUPERADMIN: {"*"},
    UserRole.OWNER: {"*"},
    UserRole.MANAGER: {
        "tasks.read",
        "tasks.write",
        "proposals.read",
        "proposals.write",
        "attachments.read",
        "attachments.write",
    },
    UserRole.INFLUENCER: {
        "tasks.read",
        "attachments.read",
    },
    UserRole.CLIENT: {
        "tasks.read",
        "proposals.read",
        "attachments.read",
    },
}


def get_scopes_for_role(role: UserRole) -> set[str]:
    """Return scopes granted to a role."""
    return ROLE_SCOPES.get(role, set())


def has_scopes(role: UserRole, required_scopes: Iterable[str]) -> bool:
    """Check if role includes every required scope."""
    granted = get_scopes_for_role(role)
    if "*" in granted:
        return True
    return set(required_scopes).issubset(granted)


def require_scopes(role: UserRole, required_scopes: Iterable[str]) -> None:
    """Raise when a role lacks required scopes."""
    required = set(required_scopes)
    if has_scopes(role=role, required_scopes=required):
        return
    missing = sorted(required - get_scopes_for_role(role))
    raise AuthorizationError(f"Missing required scopes: {', '.join(missing)}")
