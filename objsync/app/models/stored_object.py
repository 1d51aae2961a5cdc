# objsync/app/models/stored_object.py
from sqlalchemy import Column, String, Text, ForeignKey, BigInteger, Index, UniqueConstraint

from objsync.app.db.base import Base


class StoredObject(Base):
    __tablename__ = "objects"
    __table_args__ = (
        # modified_at is a per-owner logical clock: never shared by two rows
        UniqueConstraint("owner", "modified_at", name="uq_object_owner_modified_at"),
        Index("ix_object_owner_modified_at", "owner", "modified_at"),
    )

    owner = Column(
        String(255),
        ForeignKey("users.username", ondelete="CASCADE"),
        primary_key=True,
    )
    # Opaque, client-chosen
    id = Column(String(255), primary_key=True)

    # JSON text; the server never looks inside
    data = Column(Text, nullable=False)

    modified_at = Column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return (
            f"StoredObject(owner={self.owner!r}, id={self.id!r}, "
            f"modified_at={self.modified_at})"
        )
