# objsync/add_user.py
"""
Provision a user from the command line.

    objsync-add-user -u alice -p s3cret

Creates the tables if needed. An existing user with the same name is
replaced (new salt and hash); their objects and tokens are kept.
"""
import argparse
import asyncio
import logging
from typing import Optional, Sequence

from objsync.app.core.config import Settings, get_settings
from objsync.app.core.logging import setup_logging
from objsync.app.db.store import ObjectStore
from objsync.app.models.user import User
from objsync.app.security.hashing import CredentialHasher

logger = logging.getLogger(__name__)


async def add_user(username: str, password: str, settings: Optional[Settings] = None) -> User:
    settings = settings or get_settings()
    store = ObjectStore.from_settings(settings)
    hasher = CredentialHasher.from_settings(settings)

    await store.open()
    try:
        hashed = hasher.hash_password(password)
        user = User(
            username=username,
            password_hash=hashed.hash,
            salt=hashed.salt,
            iterations=hashed.iterations,
            created_at=store.clock.now_ms(),
        )
        await store.save_user(user)
        logger.info(f"Saved user {username}")
    finally:
        await store.close()

    return user


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="objsync-add-user",
        description="Create or replace a sync user",
    )
    parser.add_argument("-u", "--username", required=True)
    parser.add_argument("-p", "--password", required=True)
    args = parser.parse_args(argv)

    if not args.username or not args.password:
        parser.error("username and password must not be empty")

    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(add_user(args.username, args.password, settings))


if __name__ == "__main__":
    main()
