"""
Persistence for groups and group memberships.

GroupStore wraps a request-scoped AsyncSession. Writes are flushed, never
committed: the service commits once per operation so that an entity change,
its cascades and its event land in one transaction.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Sequence, Tuple
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.groups.models import Group, GroupUser
from app.features.users.models import User


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class GroupStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit everything written inside the block, or roll it all back."""
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    async def reload(self, *instances) -> None:
        """Refresh instances expired by a rollback."""
        for instance in instances:
            await self.db.refresh(instance)

    # Groups

    async def get_group(self, group_id: str) -> Optional[Group]:
        result = await self.db.execute(select(Group).where(Group.id == group_id))
        return result.scalar_one_or_none()

    async def list_groups(self, team_id: str, offset: int = 0, limit: int = 25) -> Sequence[Group]:
        """Groups of a team, ordered by name then id."""
        stmt = (
            select(Group)
            .where(Group.team_id == team_id)
            .order_by(Group.name, Group.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def create_group(self, team_id: str, name: str, created_by_id: Optional[str] = None) -> Group:
        group = Group(team_id=team_id, name=name, created_by_id=created_by_id)
        self.db.add(group)
        await self.db.flush()
        await self.db.refresh(group)
        return group

    async def update_group(self, group: Group, name: str) -> Group:
        group.name = name
        await self.db.flush()
        await self.db.refresh(group)
        return group

    async def delete_group(self, group: Group) -> None:
        """Delete a group and every membership in it."""
        await self.db.execute(delete(GroupUser).where(GroupUser.group_id == group.id))
        await self.db.delete(group)
        await self.db.flush()

    async def count_members(self, group_ids: Sequence[str]) -> Dict[str, int]:
        """Member count per group id; groups without members map to 0."""
        counts = {group_id: 0 for group_id in group_ids}
        if not group_ids:
            return counts
        stmt = (
            select(GroupUser.group_id, func.count(GroupUser.id))
            .where(GroupUser.group_id.in_(group_ids))
            .group_by(GroupUser.group_id)
        )
        result = await self.db.execute(stmt)
        for group_id, count in result.all():
            counts[group_id] = count
        return counts

    # Memberships

    async def list_memberships(
        self,
        group_id: str,
        team_id: str,
        name_filter: Optional[str] = None,
        offset: int = 0,
        limit: int = 25
    ) -> List[Tuple[User, GroupUser]]:
        """
        Members of a group that belong to `team_id`, with their membership rows.

        `name_filter` is a case-insensitive substring match on the user's name.
        """
        stmt = (
            select(User, GroupUser)
            .join(GroupUser, GroupUser.user_id == User.id)
            .where(GroupUser.group_id == group_id)
            .where(User.team_id == team_id)
        )
        if name_filter:
            stmt = stmt.where(User.name.ilike(f"%{escape_like(name_filter)}%", escape="\\"))

        stmt = stmt.order_by(User.name, User.id).offset(offset).limit(limit)
        result = await self.db.execute(stmt)
        return [(user, membership) for user, membership in result.all()]

    async def get_membership(self, group_id: str, user_id: str) -> Optional[GroupUser]:
        result = await self.db.execute(
            select(GroupUser).where(
                GroupUser.group_id == group_id,
                GroupUser.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def add_membership(
        self,
        group: Group,
        user: User,
        created_by_id: Optional[str] = None
    ) -> GroupUser:
        membership = GroupUser(
            team_id=group.team_id,
            group_id=group.id,
            user_id=user.id,
            created_by_id=created_by_id,
        )
        self.db.add(membership)
        await self.db.flush()
        await self.db.refresh(membership)
        return membership

    async def remove_membership(self, membership: GroupUser) -> None:
        await self.db.delete(membership)
        await self.db.flush()

    # Users

    async def get_user(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
