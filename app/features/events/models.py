"""
Event model: an append-only trail of group mutations.

Rows are written in the same transaction as the change they describe, so a
rolled back mutation leaves no event behind.
"""
from typing import Any, Dict
from sqlalchemy import String, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, IdMixin, TimestampMixin


class Event(Base, IdMixin, TimestampMixin):
    __tablename__ = "events"

    # Dotted name of the operation, e.g. "groups.create"
    name: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    actor_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    team_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Id of the affected record; not a foreign key so it survives deletes
    model_id: Mapped[str | None] = mapped_column(String(26), nullable=True, index=True)
    data: Mapped[Dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, name={self.name}, model_id={self.model_id})>"
