"""
SQLAlchemy declarative base and common model utilities.

All SQLAlchemy models should inherit from Base.
"""
from datetime import datetime
from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from ulid import ULID


def generate_id() -> str:
    """Generate a new ULID string (26 characters, lexicographically sortable)."""
    return str(ULID())


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Usage:
        from app.core.database.base import Base, IdMixin

        class Team(Base, IdMixin):
            __tablename__ = "teams"

            name: Mapped[str] = mapped_column(String(255))
    """
    pass


class IdMixin:
    """ULID string primary key."""
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_id)


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.

    Usage:
        class Group(Base, IdMixin, TimestampMixin):
            __tablename__ = "groups"
    """
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
