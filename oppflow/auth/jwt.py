"""HS256 bearer tokens carrying the identity provider claims.

Tokens are compact JWS strings (``header.payload.signature``). Only ``HS256`` is
accepted; the ``alg`` header is checked before the signature so a token signed
with anything else never reaches claim parsing.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from oppflow.core.exceptions import AuthenticationError

ALGORITHM = "HS256"
ACCESS_TOKEN_USE = "access"
CLOCK_SKEW_SECONDS = 30


def _segment(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _unsegment(segment: str) -> bytes:
    try:
        return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (ValueError, TypeError) as exc:
        raise AuthenticationError("Invalid token encoding.") from exc


def _signature(signing_input: str, secret: str) -> str:
    mac = hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256)
    return _segment(mac.digest())


def _load_segment(segment: str, what: str) -> dict[str, Any]:
    try:
        value = json.loads(_unsegment(segment))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise AuthenticationError(f"Invalid token {what}.") from exc
    if not isinstance(value, dict):
        raise AuthenticationError(f"Invalid token {what}.")
    return value


def encode_jwt(payload: dict[str, Any], secret: str, ttl: timedelta) -> str:
    """Sign ``payload``; ``iat``/``exp``/``jti`` are filled in unless supplied."""
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")

    issued = datetime.now(timezone.utc)
    claims = {
        "iat": int(issued.timestamp()),
        "exp": int((issued + ttl).timestamp()),
        "jti": uuid.uuid4().hex,
        **payload,
    }
    header = {"alg": ALGORITHM, "typ": "JWT"}
    signing_input = ".".join(
        _segment(json.dumps(part, separators=(",", ":"), sort_keys=True).encode("utf-8"))
        for part in (header, claims)
    )
    return f"{signing_input}.{_signature(signing_input, secret)}"


def decode_jwt(token: str, secret: str, verify_exp: bool = True) -> dict[str, Any]:
    """Verify ``token`` and return its claims; any defect raises ``AuthenticationError``."""
    if not secret:
        raise AuthenticationError("JWT secret must be configured.")
    segments = token.split(".")
    if len(segments) != 3:
        raise AuthenticationError("Invalid token format.")
    header_segment, payload_segment, signature_segment = segments

    header = _load_segment(header_segment, "header")
    if header.get("alg") != ALGORITHM:
        raise AuthenticationError("Unsupported token algorithm.")

    expected = _signature(f"{header_segment}.{payload_segment}", secret)
    if not hmac.compare_digest(expected, signature_segment):
        raise AuthenticationError("Invalid token signature.")

    claims = _load_segment(payload_segment, "payload")
    if verify_exp:
        try:
            expires_at = int(claims["exp"])
        except (KeyError, TypeError, ValueError) as exc:
            raise AuthenticationError("Token is missing exp claim.") from exc
        now = int(datetime.now(timezone.utc).timestamp())
        if expires_at + CLOCK_SKEW_SECONDS < now:
            raise AuthenticationError("Token has expired.")
    return claims


def decode_access_token(token: str, secret: str) -> dict[str, Any]:
    claims = decode_jwt(token, secret=secret)
    if claims.get("token_use", ACCESS_TOKEN_USE) != ACCESS_TOKEN_USE:
        raise AuthenticationError("Token is not an access token.")
    return claims


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    secret: str,
    tenant_id: int | None = None,
    ttl_minutes: int = 60,
) -> str:
    """Issue an access token. Superadmins may carry no ``tenant_id`` claim."""
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "token_use": ACCESS_TOKEN_USE,
    }
    if tenant_id is not None:
        claims["tenant_id"] = tenant_id
    return encode_jwt(claims, secret=secret, ttl=timedelta(minutes=ttl_minutes))
