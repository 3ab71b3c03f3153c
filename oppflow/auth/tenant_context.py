"""Principal and tenant resolution for every inbound request.

The identity provider hands us a set of claims; this module turns them into a
``Principal`` and decides which ``Tenant`` the request may act on. Non-superadmin
principals are pinned to their membership tenant. Superadmins may target any
tenant and, when they name none, fall back to their own membership and then to
the earliest-created tenant. That last fallback only keeps admin tooling usable
and is always logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from oppflow.core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from oppflow.models import Tenant, UserRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    id: int
    email: str
    role: UserRole
    tenant_id: int | None = None

    @property
    def is_superadmin(self) -> bool:
        return self.role is UserRole.SUPERADMIN


@dataclass(frozen=True)
class TenantContext:
    principal: Principal
    tenant: Tenant

    @property
    def tenant_id(self) -> int:
        return self.tenant.id


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    """Build a principal from identity provider claims."""
    try:
        user_id = int(claims["sub"])
        role = UserRole(str(claims["role"]).upper())
        raw_tenant = claims.get("tenant_id")
        tenant_id = int(raw_tenant) if raw_tenant is not None else None
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthenticationError("Token claims are missing principal context.") from exc

    return Principal(
        id=user_id,
        email=str(claims.get("email") or ""),
        role=role,
        tenant_id=tenant_id,
    )


def _load_tenant(db: Session, tenant_id: int) -> Tenant:
    tenant = db.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFoundError("Organization not found.")
    return tenant


def resolve_tenant(
    db: Session,
    principal: Principal | None,
    requested_tenant_id: int | None = None,
) -> Tenant:
    """Return the tenant ``principal`` may act on for this request."""
    if principal is None:
        raise AuthenticationError("Unauthorized.")

    if principal.is_superadmin:
        if requested_tenant_id is not None:
            return _load_tenant(db, requested_tenant_id)
        if principal.tenant_id is not None:
            return _load_tenant(db, principal.tenant_id)

        tenant = db.query(Tenant).order_by(Tenant.created_at.asc(), Tenant.id.asc()).first()
        if tenant is None:
            raise NotFoundError("No organizations found.")
        logger.warning(
            "tenant.superadmin_fallback",
            extra={
                "event": "tenant.superadmin_fallback",
                "user_id": principal.id,
                "tenant_id": tenant.id,
            },
        )
        return tenant

    if principal.tenant_id is None:
        raise AuthenticationError("User is not assigned to an organization (no tenant).")
    if requested_tenant_id is not None and requested_tenant_id != principal.tenant_id:
        raise AuthorizationError("Access denied to this organization (cross-tenant access).")
    return _load_tenant(db, principal.tenant_id)


def resolve_context(
    db: Session,
    principal: Principal | None,
    requested_tenant_id: int | None = None,
) -> TenantContext:
    tenant = resolve_tenant(db, principal, requested_tenant_id=requested_tenant_id)
    return TenantContext(principal=principal, tenant=tenant)
