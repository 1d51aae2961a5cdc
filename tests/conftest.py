"""
Shared pytest fixtures for objsync tests.

This module provides:
- ManualClock: deterministic time source for the store, gateway and reaper
- A file-backed SQLite object store per test
- An httpx AsyncClient bound to the FastAPI app
"""

import asyncio
import base64

import httpx
import pytest
import pytest_asyncio

from objsync.app.core.clock import Clock
from objsync.app.core.config import Settings
from objsync.app.db.store import ObjectStore
from objsync.app.main import create_app
from objsync.app.models.user import User
from objsync.app.security.gateway import AuthGateway
from objsync.app.security.hashing import CredentialHasher

START_MS = 1_700_000_000_000
TEST_ITERATIONS = 1000


class ManualClock(Clock):
    """
    Clock that only moves when told to.

    ``sleep`` records the requested interval, advances time by it and yields
    once to the event loop.
    """

    def __init__(self, now_ms: int = START_MS):
        self.now = now_ms
        self.sleeps = []

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += int(seconds * 1000)
        await asyncio.sleep(0)


def basic_auth(username: str, password: str) -> str:
    raw = f"{username}:{password}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


def make_user(hasher: CredentialHasher, username: str, password: str, created_at: int = START_MS) -> User:
    hashed = hasher.hash_password(password)
    return User(
        username=username,
        password_hash=hashed.hash,
        salt=hashed.salt,
        iterations=hashed.iterations,
        created_at=created_at,
    )


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'objsync-test.db'}",
        PBKDF2_ITERATIONS=TEST_ITERATIONS,
        TOKEN_REAPER_ENABLED=False,
        AUTH_TOKEN_EXPIRY_SECONDS=3600,
    )


@pytest.fixture
def hasher(settings):
    return CredentialHasher.from_settings(settings)


@pytest_asyncio.fixture
async def store(settings, clock):
    store = ObjectStore.from_settings(settings, clock=clock)
    await store.open()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def alice(store, hasher):
    user = make_user(hasher, "alice", "s3cret")
    await store.save_user(user)
    return user


@pytest.fixture
def gateway(store, settings, clock):
    return AuthGateway.from_settings(store, settings, clock=clock)


@pytest.fixture
def app(settings, store, clock):
    return create_app(settings=settings, store=store, clock=clock)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
