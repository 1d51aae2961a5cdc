# objsync/app/models/user.py
from sqlalchemy import Column, String, Integer, LargeBinary, BigInteger

from objsync.app.db.base import Base
from objsync.app.security.hashing import HashedPassword


class User(Base):
    __tablename__ = "users"

    username = Column(String(255), primary_key=True)

    # PBKDF2 output plus the parameters it was derived with.
    # Verification always replays these, never the current defaults.
    password_hash = Column("hash", LargeBinary, nullable=False)
    salt = Column(LargeBinary, nullable=False)
    iterations = Column(Integer, nullable=False)

    # Milliseconds since epoch
    created_at = Column(BigInteger, nullable=False)

    @property
    def hashed_password(self) -> HashedPassword:
        return HashedPassword(
            salt=self.salt,
            iterations=self.iterations,
            hash=self.password_hash,
        )

    def __repr__(self) -> str:
        return f"User(username={self.username!r})"
