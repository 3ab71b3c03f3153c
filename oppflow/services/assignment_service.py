"""Resolve polymorphic assignee references to tenant-scoped ids."""

from __future__ import annotations

from oppflow.models import Assignee, AssigneeKind
from oppflow.repositories.tenant_scope import TenantScope

USER_REF_PREFIX = "user-"


def _parse_id(raw: str) -> int | None:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def format_assignee_ref(assignee: Assignee) -> str | None:
    """Inverse of ``resolve_assignee`` for form round-trips."""
    if not assignee.is_assigned:
        return None
    if assignee.kind is AssigneeKind.USER:
        return f"{USER_REF_PREFIX}{assignee.id}"
    return str(assignee.id)


def resolve_assignee(ref: str | None, scope: TenantScope) -> Assignee:
    """Map ``ref`` to a user, a contact, or nobody.

    ``user-<id>`` names an internal user, anything else a contact id. References
    that do not resolve inside the tenant degrade to ``Assignee.none()`` instead
    of raising; callers log the degradation.
    """
    if ref is None or not ref.strip():
        return Assignee.none()

    ref = ref.strip()
    if ref.startswith(USER_REF_PREFIX):
        user_id = _parse_id(ref[len(USER_REF_PREFIX):])
        if user_id is not None and scope.find_assignable_user(user_id) is not None:
            return Assignee.user(user_id)
        return Assignee.none()

    contact_id = _parse_id(ref)
    if contact_id is not None and scope.find_contact(contact_id) is not None:
        return Assignee.contact(contact_id)
    return Assignee.none()
