"""
Unit tests for credential resolution in the auth gateway.
"""

import base64
from unittest.mock import AsyncMock

import pytest

from objsync.app.models.auth_token import AuthToken
from objsync.app.security.gateway import (
    AuthGateway,
    Authenticated,
    Rejected,
    RejectionKind,
)
from objsync.app.security.hashing import CredentialHasher
from objsync.app.security.tokens import decode_token, encode_token

from conftest import START_MS, basic_auth, make_user

MISSING = Rejected(RejectionKind.MISSING)
MALFORMED = Rejected(RejectionKind.MALFORMED)
INVALID = Rejected(RejectionKind.INVALID)


# =============================================================================
# Header parsing
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize("header", [None, "", "   "])
async def test_missing_header(gateway, header):
    assert await gateway.authenticate(header) == MISSING


@pytest.mark.asyncio
@pytest.mark.parametrize("header", ["Basic", "Bearer", "Digest abc", "Token xyz", "czNjcmV0"])
async def test_unrecognized_header(gateway, header):
    assert await gateway.authenticate(header) == MALFORMED


# =============================================================================
# Basic
# =============================================================================


@pytest.mark.asyncio
async def test_basic_valid(gateway, alice):
    result = await gateway.authenticate(basic_auth("alice", "s3cret"))

    assert isinstance(result, Authenticated)
    assert result.user.username == "alice"


@pytest.mark.asyncio
@pytest.mark.parametrize("scheme", ["basic", "BASIC", "bAsIc"])
async def test_basic_scheme_is_case_insensitive(gateway, alice, scheme):
    payload = base64.b64encode(b"alice:s3cret").decode("ascii")

    result = await gateway.authenticate(f"{scheme} {payload}")

    assert isinstance(result, Authenticated)


@pytest.mark.asyncio
async def test_basic_password_may_contain_colons(store, gateway, hasher):
    await store.save_user(make_user(hasher, "carol", "a:b:c"))

    result = await gateway.authenticate(basic_auth("carol", "a:b:c"))

    assert isinstance(result, Authenticated)


@pytest.mark.asyncio
@pytest.mark.parametrize("password", ["wrong", "", "s3cret "])
async def test_basic_wrong_password(gateway, alice, password):
    assert await gateway.authenticate(basic_auth("alice", password)) == INVALID


@pytest.mark.asyncio
async def test_basic_unknown_user_same_as_wrong_password(gateway, alice):
    assert await gateway.authenticate(basic_auth("nobody", "s3cret")) == INVALID


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        "not-base64!",
        base64.b64encode(b"no-colon-here").decode("ascii"),
        base64.b64encode(b"\xff\xfe:\xfd").decode("ascii"),
        "YWxpY2U6czNjcmV0===",
        "YWxpY2U6czNjcmV0=",
        "YWxpY2U6czNjcmV=",
    ],
)
async def test_basic_malformed_payload(gateway, alice, payload):
    assert await gateway.authenticate(f"Basic {payload}") == MALFORMED


# =============================================================================
# Bearer
# =============================================================================


@pytest.mark.asyncio
async def test_issue_token(gateway, alice, clock, settings):
    token, encoded = await gateway.issue_token(alice)

    assert token.owner == "alice"
    assert len(token.id) == settings.AUTH_TOKEN_ID_LEN
    assert len(token.secret) == settings.AUTH_TOKEN_LEN
    assert token.expires_at == clock.now + settings.AUTH_TOKEN_EXPIRY_MS
    assert decode_token(encoded) == (token.id, token.secret)


@pytest.mark.asyncio
async def test_bearer_valid(gateway, alice):
    _, encoded = await gateway.issue_token(alice)

    result = await gateway.authenticate(f"Bearer {encoded}")

    assert isinstance(result, Authenticated)
    assert result.user.username == "alice"


@pytest.mark.asyncio
async def test_bearer_accepted_until_expiry(gateway, alice, clock, settings):
    _, encoded = await gateway.issue_token(alice)

    clock.advance(settings.AUTH_TOKEN_EXPIRY_MS - 1)
    assert isinstance(await gateway.authenticate(f"Bearer {encoded}"), Authenticated)

    clock.advance(1)
    assert await gateway.authenticate(f"Bearer {encoded}") == INVALID


@pytest.mark.asyncio
async def test_bearer_wrong_secret(gateway, alice):
    token, _ = await gateway.issue_token(alice)
    forged = encode_token(token.id, b"x" * len(token.secret))

    assert await gateway.authenticate(f"Bearer {forged}") == INVALID


@pytest.mark.asyncio
async def test_bearer_unknown_token(gateway, alice):
    forged = encode_token(b"unknown-id", b"secret")
    assert await gateway.authenticate(f"Bearer {forged}") == INVALID


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["abc", "a:b:c", "!!!:???", "AAE=:"])
async def test_bearer_malformed(gateway, payload):
    assert await gateway.authenticate(f"Bearer {payload}") == MALFORMED


@pytest.mark.asyncio
async def test_revoked_token_rejected_on_replay(gateway, alice):
    _, encoded = await gateway.issue_token(alice)

    assert await gateway.revoke_token(alice, encoded) is True
    assert await gateway.authenticate(f"Bearer {encoded}") == INVALID
    assert await gateway.revoke_token(alice, encoded) is False


@pytest.mark.asyncio
async def test_revoke_someone_elses_token(store, gateway, hasher, alice):
    mallory = make_user(hasher, "mallory", "pw")
    await store.save_user(mallory)
    _, encoded = await gateway.issue_token(alice)

    assert await gateway.revoke_token(mallory, encoded) is False
    assert isinstance(await gateway.authenticate(f"Bearer {encoded}"), Authenticated)


@pytest.mark.asyncio
async def test_revoke_malformed_token(gateway, alice):
    assert await gateway.revoke_token(alice, "garbage") is None


@pytest.mark.asyncio
async def test_bearer_owner_deleted():
    """Token row still present but its owner is gone."""
    token = AuthToken(id=b"id", owner="ghost", secret=b"secret", expires_at=START_MS + 1)
    store = AsyncMock()
    store.get_auth_token = AsyncMock(return_value=token)
    store.get_user = AsyncMock(return_value=None)
    gateway = AuthGateway(store, CredentialHasher(iterations=1000))

    result = await gateway.authenticate(f"Bearer {encode_token(b'id', b'secret')}")

    assert result == INVALID
    store.get_auth_token.assert_awaited_once_with(b"id")
    store.get_user.assert_awaited_once_with("ghost")
