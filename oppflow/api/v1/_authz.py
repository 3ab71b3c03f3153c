"""Shared authorization helpers for API v1 route modules."""

from __future__ import annotations

from sqlalchemy.orm import Session

from oppflow.auth.jwt import decode_access_token
from oppflow.auth.rbac import require_scopes
from oppflow.auth.tenant_context import TenantContext, principal_from_claims, resolve_context
from oppflow.core.config import get_config
from oppflow.core.exceptions import AuthenticationError, OppflowError, ValidationError

ERROR_STATUS_CODES: dict[str, int] = {
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "validation_error": 400,
    "conflict": 409,
    "delivery_failed": 502,
    "upstream_unavailable": 503,
    "blob_store_failed": 502,
}


def _extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()


def _parse_tenant_header(raw: str | int | None) -> int | None:
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError("X-Tenant-Id must be an integer.", field="X-Tenant-Id") from exc


def authorize(
    db: Session,
    authorization: str | None,
    scopes: list[str],
    tenant_header: str | int | None = None,
) -> TenantContext:
    """Decode the bearer token, check scopes and pin the request to one tenant."""
    token = _extract_bearer_token(authorization)
    claims = decode_access_token(token, secret=get_config().JWT_SECRET)
    principal = principal_from_claims(claims)
    require_scopes(principal.role, scopes)
    return resolve_context(db, principal, requested_tenant_id=_parse_tenant_header(tenant_header))


def status_for(exc: OppflowError) -> int:
    return ERROR_STATUS_CODES.get(exc.error_code, 500)
