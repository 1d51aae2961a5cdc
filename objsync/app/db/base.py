# objsync/app/db/base.py
"""
SQLAlchemy declarative base.

All ORM models inherit from ``Base``; ``Base.metadata`` is what the object
store creates on open.
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Usage:
        class User(Base):
            __tablename__ = "users"
            username = Column(String(255), primary_key=True)
            ...
    """
    pass


__all__ = ["Base"]
