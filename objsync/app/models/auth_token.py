# objsync/app/models/auth_token.py
"""
ORM model for bearer tokens.

The ``id`` half is public and used for lookup. The ``secret`` half is stored
as issued so it can be compared in constant time against what the client
sends; this table must be protected like process memory.
"""
from sqlalchemy import Column, String, LargeBinary, ForeignKey, BigInteger

from objsync.app.db.base import Base


class AuthToken(Base):
    __tablename__ = "auth_tokens"

    id = Column(LargeBinary, primary_key=True)

    owner = Column(
        String(255),
        ForeignKey("users.username", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    secret = Column(LargeBinary, nullable=False)

    # Milliseconds since epoch. A token is valid while now < expires_at.
    expires_at = Column(BigInteger, nullable=False, index=True)

    def __repr__(self) -> str:
        # Never print the secret
        return f"AuthToken(owner={self.owner!r}, expires_at={self.expires_at})"
