"""
Group and GroupUser models.

Groups are named collections of users scoped to a team. A GroupUser row is a
single membership; a user belongs to a given group at most once.
"""
from sqlalchemy import String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, IdMixin, TimestampMixin


class Group(Base, IdMixin, TimestampMixin):
    __tablename__ = "groups"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Owning team, never changed after creation
    team_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    created_by_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name={self.name!r}, team_id={self.team_id})>"


class GroupUser(Base, IdMixin, TimestampMixin):
    """Membership of a user in a group."""
    __tablename__ = "group_users"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_users_group_user"),
    )

    team_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    group_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    created_by_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    def __repr__(self) -> str:
        return f"<GroupUser(id={self.id}, group_id={self.group_id}, user_id={self.user_id})>"
