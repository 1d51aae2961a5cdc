# objsync/app/security/gateway.py
"""
Resolves an Authorization header to a verified user.

Supported schemes (case-insensitive):
- Basic  base64(username:password)
- Bearer base64(id):base64(secret)

The outcome is a value, never an exception: ``Authenticated(user)`` or
``Rejected(kind)``. Callers must branch on it before doing any work for the
request.

Rejection kinds:
- MISSING:   no header at all
- MALFORMED: header present but not decodable
- INVALID:   decodable but wrong. Unknown user, wrong password, unknown or
             expired token, deleted owner and secret mismatch all collapse
             into this one kind.
"""
import asyncio
import enum
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from objsync.app.core.clock import Clock
from objsync.app.core.config import Settings
from objsync.app.db.store import ObjectStore
from objsync.app.models.auth_token import AuthToken
from objsync.app.models.user import User
from objsync.app.security.hashing import CredentialHasher
from objsync.app.security.tokens import b64decode_canonical, decode_token, encode_token

logger = logging.getLogger(__name__)


class RejectionKind(str, enum.Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    INVALID = "invalid"


@dataclass(frozen=True)
class Authenticated:
    user: User


@dataclass(frozen=True)
class Rejected:
    kind: RejectionKind


AuthResult = Union[Authenticated, Rejected]

_MISSING = Rejected(RejectionKind.MISSING)
_MALFORMED = Rejected(RejectionKind.MALFORMED)
_INVALID = Rejected(RejectionKind.INVALID)


class AuthGateway:
    """Verifies credentials against the object store and issues tokens."""

    def __init__(
        self,
        store: ObjectStore,
        hasher: CredentialHasher,
        clock: Optional[Clock] = None,
        token_id_len: int = 16,
        token_len: int = 32,
        token_lifetime_ms: int = 30 * 24 * 3600 * 1000,
    ):
        self.store = store
        self.hasher = hasher
        self.clock = clock or store.clock
        self.token_id_len = token_id_len
        self.token_len = token_len
        self.token_lifetime_ms = token_lifetime_ms

    @classmethod
    def from_settings(
        cls,
        store: ObjectStore,
        settings: Settings,
        clock: Optional[Clock] = None,
    ) -> "AuthGateway":
        return cls(
            store,
            CredentialHasher.from_settings(settings),
            clock=clock,
            token_id_len=settings.AUTH_TOKEN_ID_LEN,
            token_len=settings.AUTH_TOKEN_LEN,
            token_lifetime_ms=settings.AUTH_TOKEN_EXPIRY_MS,
        )

    async def authenticate(self, authorization: Optional[str]) -> AuthResult:
        """
        Verify the raw value of an Authorization header.

        Args:
            authorization: Header value, or None if the header was absent

        Returns:
            Authenticated(user) or Rejected(kind)
        """
        if not authorization or not authorization.strip():
            return _MISSING

        parts = authorization.strip().split(None, 1)
        if len(parts) != 2:
            return _MALFORMED

        scheme, payload = parts[0].lower(), parts[1].strip()
        if scheme == "basic":
            return await self._authenticate_basic(payload)
        if scheme == "bearer":
            return await self._authenticate_bearer(payload)

        return _MALFORMED

    async def _authenticate_basic(self, payload: str) -> AuthResult:
        raw = b64decode_canonical(payload)
        if raw is None:
            return _MALFORMED
        try:
            decoded = raw.decode("utf-8")
        except UnicodeDecodeError:
            return _MALFORMED

        # RFC 7617: the username ends at the first colon
        username, sep, password = decoded.partition(":")
        if not sep:
            return _MALFORMED

        user = await self.store.get_user(username)
        if user is None:
            logger.debug("Basic auth rejected")
            return _INVALID

        # PBKDF2 is CPU bound
        is_valid = await asyncio.to_thread(
            self.hasher.verify_password, user.hashed_password, password
        )
        if not is_valid:
            logger.debug("Basic auth rejected")
            return _INVALID

        return Authenticated(user)

    async def _authenticate_bearer(self, payload: str) -> AuthResult:
        parts = decode_token(payload)
        if parts is None:
            return _MALFORMED

        token = await self.store.get_auth_token(parts.id)
        if token is None:
            logger.debug("Bearer auth rejected: unknown or expired token")
            return _INVALID

        user = await self.store.get_user(token.owner)
        if user is None:
            logger.debug("Bearer auth rejected: token owner no longer exists")
            return _INVALID

        if not hmac.compare_digest(token.secret, parts.secret):
            logger.debug("Bearer auth rejected: secret mismatch")
            return _INVALID

        return Authenticated(user)

    async def issue_token(self, user: User) -> Tuple[AuthToken, str]:
        """
        Create and persist a new bearer token for ``user``.

        Returns:
            The stored token and its encoded form. The encoded form is the
            only thing the client ever gets and cannot be rebuilt later
            without reading the secret back from storage.
        """
        token = AuthToken(
            id=secrets.token_bytes(self.token_id_len),
            owner=user.username,
            secret=secrets.token_bytes(self.token_len),
            expires_at=self.clock.now_ms() + self.token_lifetime_ms,
        )
        await self.store.save_auth_token(token)
        logger.info(f"Issued auth token for {user.username}")
        return token, encode_token(token.id, token.secret)

    async def revoke_token(self, user: User, encoded: str) -> Optional[bool]:
        """
        Delete one of ``user``'s tokens given its encoded form.

        Returns:
            None if ``encoded`` is malformed, otherwise whether a token
            owned by ``user`` was deleted
        """
        parts = decode_token(encoded)
        if parts is None:
            return None

        deleted = await self.store.delete_auth_token(user.username, parts.id)
        if deleted:
            logger.info(f"Revoked auth token for {user.username}")
        return deleted
