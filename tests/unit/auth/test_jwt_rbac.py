from __future__ import annotations

from datetime import timedelta

import pytest

from oppflow.auth.jwt import create_access_token, decode_access_token, decode_jwt, encode_jwt
from oppflow.auth.rbac import has_scopes, require_scopes
from oppflow.core.exceptions import AuthenticationError, AuthorizationError
from oppflow.models import UserRole


def test_access_token_roundtrip_contains_identity_claims():
    token = create_access_token(user_id=10, email="ten@acme.test", role="OWNER", secret="test-secret", tenant_id=20)
    claims = decode_jwt(token, secret="test-secret")
    assert claims["sub"] == "10"
    assert claims["email"] == "ten@acme.test"
    assert claims["tenant_id"] == 20
    assert claims["role"] == "OWNER"
    assert "exp" in claims


def test_superadmin_token_omits_tenant_claim():
    token = create_access_token(user_id=1, email="root@platform.test", role="SUPERADMIN", secret="s")
    assert "tenant_id" not in decode_jwt(token, secret="s")


def test_tampered_or_expired_tokens_are_rejected():
    token = create_access_token(user_id=1, email="x@y.test", role="OWNER", secret="right")
    with pytest.raises(AuthenticationError):
        decode_jwt(token, secret="wrong")
    expired = encode_jwt({"sub": "1"}, secret="right", ttl=timedelta(minutes=-5))
    with pytest.raises(AuthenticationError):
        decode_jwt(expired, secret="right")


def test_rbac_keeps_clients_read_only():
    require_scopes(UserRole.CLIENT, ["proposals.read"])
    with pytest.raises(AuthorizationError):
        require_scopes(UserRole.CLIENT, ["proposals.write"])
    assert not has_scopes(UserRole.INFLUENCER, ["proposals.read"])


def test_owner_and_superadmin_hold_every_scope():
    assert has_scopes(UserRole.OWNER, ["tasks.write", "attachments.write"])
    assert has_scopes(UserRole.SUPERADMIN, ["anything.at.all"])


def test_non_access_tokens_and_foreign_algorithms_are_rejected():
    refresh = encode_jwt({"sub": "1", "token_use": "refresh"}, secret="s", ttl=timedelta(days=1))
    with pytest.raises(AuthenticationError):
        decode_access_token(refresh, secret="s")

    token = create_access_token(user_id=1, email="x@y.test", role="OWNER", secret="s")
    _, payload, signature = token.split(".")
    unsigned_header = "eyJhbGciOiJub25lIiwidHlwIjoiSldUIn0"  # {"alg":"none","typ":"JWT"}
    with pytest.raises(AuthenticationError):
        decode_jwt(f"{unsigned_header}.{payload}.{signature}", secret="s")
