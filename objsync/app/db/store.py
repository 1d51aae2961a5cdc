# objsync/app/db/store.py
"""
Persistent storage for users, synced objects and bearer tokens.

Every object write gets a ``modified_at`` value from a per-owner logical
clock:

    base = max(now_ms, 1 + max(modified_at of the owner's objects))

and the objects of one batch take ``base, base + 1, ...`` in batch order.
The clock follows wall time when it can and otherwise runs ahead of it, so a
client that syncs with ``since=<last watermark>`` sees every later write
exactly once, in write order.

Concurrency:
- save_objects locks the owner's user row (SELECT ... FOR UPDATE) inside
  its transaction. Writers for other owners are not blocked.
- SQLite has no row locks; there the transaction starts with
  BEGIN IMMEDIATE, and an in-process per-owner asyncio.Lock keeps same-owner
  batches from queueing on the database lock.
- Each operation is one session and one transaction. A cancelled caller
  either commits the whole batch or none of it.
"""
import asyncio
import logging
import weakref
from typing import List, NamedTuple, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncEngine

from objsync.app.core.clock import Clock
from objsync.app.core.config import Settings
from objsync.app.db.base import Base
from objsync.app.db.session import (
    SQLITE_BEGIN_OPTION,
    create_engine_from_settings,
    create_session_factory,
)
from objsync.app.models.auth_token import AuthToken
from objsync.app.models.stored_object import StoredObject
from objsync.app.models.user import User

logger = logging.getLogger(__name__)

_WRITE_OPTIONS = {SQLITE_BEGIN_OPTION: "IMMEDIATE"}


class ObjectWrite(NamedTuple):
    """One entry of a save batch. ``data`` is JSON text."""
    id: str
    data: str


class UnknownOwnerError(LookupError):
    """Raised when writing objects for a user that does not exist."""

    def __init__(self, owner: str):
        super().__init__(f"Unknown owner: {owner}")
        self.owner = owner


class ObjectStore:
    """
    Repository over the three tables.

    Lifecycle: construct, ``await open()``, serve, ``await close()``.
    """

    def __init__(self, engine: AsyncEngine, clock: Optional[Clock] = None):
        self.engine = engine
        self.clock = clock or Clock()
        self._sessions = create_session_factory(engine)
        self._owner_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    @classmethod
    def from_settings(cls, settings: Settings, clock: Optional[Clock] = None) -> "ObjectStore":
        return cls(create_engine_from_settings(settings), clock=clock)

    async def open(self) -> None:
        """Create missing tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Object store ready ({self.engine.url.get_backend_name()})")

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Object store closed")

    def _owner_lock(self, owner: str) -> asyncio.Lock:
        lock = self._owner_locks.get(owner)
        if lock is None:
            lock = asyncio.Lock()
            self._owner_locks[owner] = lock
        return lock

    # ─────────────────────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────────────────────

    async def save_user(self, user: User) -> None:
        """Insert or fully replace a user."""
        async with self._sessions() as session:
            await session.connection(execution_options=_WRITE_OPTIONS)
            await session.merge(user)
            await session.commit()

    async def get_user(self, username: str) -> Optional[User]:
        async with self._sessions() as session:
            return await session.get(User, username)

    # ─────────────────────────────────────────────────────────────
    # Objects
    # ─────────────────────────────────────────────────────────────

    async def save_objects(self, owner: str, objects: Sequence[ObjectWrite]) -> int:
        """
        Upsert a batch of objects for ``owner`` and stamp them.

        Args:
            owner: Username owning the objects
            objects: Batch in write order

        Returns:
            The last ``modified_at`` assigned, i.e. the owner's new sync
            cursor. For an empty batch, the owner's current high-water mark
            (0 if the owner has no objects).

        Raises:
            UnknownOwnerError: if the owner does not exist
        """
        async with self._owner_lock(owner):
            async with self._sessions() as session:
                # Uncommitted work is rolled back when the session closes
                await session.connection(execution_options=_WRITE_OPTIONS)

                locked = await session.execute(
                    select(User.username)
                    .where(User.username == owner)
                    .with_for_update()
                )
                if locked.scalar_one_or_none() is None:
                    raise UnknownOwnerError(owner)

                result = await session.execute(
                    select(func.max(StoredObject.modified_at))
                    .where(StoredObject.owner == owner)
                )
                current = result.scalar_one()

                if not objects:
                    return current or 0

                base = self.clock.now_ms()
                if current is not None:
                    base = max(base, current + 1)

                for offset, obj in enumerate(objects):
                    await session.merge(
                        StoredObject(
                            owner=owner,
                            id=obj.id,
                            data=obj.data,
                            modified_at=base + offset,
                        )
                    )
                    # Flush per row so a repeated id in one batch
                    # updates the row merged just before it.
                    await session.flush()

                await session.commit()
                watermark = base + len(objects) - 1

        logger.debug(f"Saved {len(objects)} objects for {owner}, watermark={watermark}")
        return watermark

    async def get_objects_by_owner(self, owner: str, since: int = 0) -> List[StoredObject]:
        """
        Objects of ``owner`` with ``modified_at > since``, oldest first.
        """
        async with self._sessions() as session:
            result = await session.execute(
                select(StoredObject)
                .where(StoredObject.owner == owner, StoredObject.modified_at > since)
                .order_by(StoredObject.modified_at.asc())
            )
            return list(result.scalars().all())

    async def get_object(self, owner: str, object_id: str) -> Optional[StoredObject]:
        async with self._sessions() as session:
            return await session.get(StoredObject, (owner, object_id))

    # ─────────────────────────────────────────────────────────────
    # Auth tokens
    # ─────────────────────────────────────────────────────────────

    async def save_auth_token(self, token: AuthToken) -> None:
        async with self._sessions() as session:
            async with session.begin():
                await session.merge(token)

    async def get_auth_token(self, token_id: bytes) -> Optional[AuthToken]:
        """
        Look up a token by id.

        Expired tokens are filtered here, so they are invisible from the
        moment they expire whether or not the reaper has run.
        """
        async with self._sessions() as session:
            result = await session.execute(
                select(AuthToken).where(
                    AuthToken.id == token_id,
                    AuthToken.expires_at > self.clock.now_ms(),
                )
            )
            return result.scalars().first()

    async def delete_auth_token(self, owner: str, token_id: bytes) -> bool:
        """
        Delete a token if it belongs to ``owner``.

        Returns:
            True if a row was deleted
        """
        async with self._sessions() as session:
            async with session.begin():
                result = await session.execute(
                    delete(AuthToken).where(
                        AuthToken.id == token_id,
                        AuthToken.owner == owner,
                    )
                )
        return result.rowcount > 0

    async def delete_stale_auth_tokens(self) -> int:
        """
        Delete every token whose expiry has passed.

        Returns:
            Number of tokens deleted
        """
        async with self._sessions() as session:
            async with session.begin():
                result = await session.execute(
                    delete(AuthToken).where(AuthToken.expires_at <= self.clock.now_ms())
                )
        return result.rowcount
