"""
User model with ULID primary keys.
"""
from sqlalchemy import String, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, IdMixin, TimestampMixin


class User(Base, IdMixin, TimestampMixin):
    """
    User model representing members of a team.

    Users are owned by their team. Groups and memberships reference them but
    never own them.
    """
    __tablename__ = "users"

    team_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Display name, used by the memberships name filter
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, team_id={self.team_id}, name={self.name!r})>"
