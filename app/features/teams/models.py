"""
Team model.

A team owns its users, groups and group memberships. Every authorization
decision starts by comparing the actor's team with the resource's team.
"""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, IdMixin, TimestampMixin


class Team(Base, IdMixin, TimestampMixin):
    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name={self.name!r})>"
