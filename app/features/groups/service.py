"""
Group service: every group and membership operation, with authorization.

Each operation requires a resolved actor, then follows the same order:
1. load the target (NotFound if absent)
2. authorize through the policy engine (Forbidden on denial)
3. validate input (ValidationFailure)
4. read or write through the store, one transaction per mutation
5. return the entities together with freshly computed abilities
"""
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError

from app.core.errors import NotFound
from app.core.validation import validate_id, validate_name, validate_pagination
from app.features.events.service import record_event
from app.features.groups.models import Group, GroupUser
from app.features.groups.store import GroupStore
from app.features.policies.engine import (
    AbilitySet,
    Action,
    Actor,
    TeamScope,
    abilities_for,
    authorize,
    require_actor,
)
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


@dataclass
class GroupResult:
    group: Group
    abilities: AbilitySet
    member_count: int = 0


@dataclass
class GroupListResult:
    groups: List[GroupResult] = field(default_factory=list)
    offset: int = 0
    limit: int = 0


@dataclass
class MembershipsResult:
    users: List[User] = field(default_factory=list)
    group_memberships: List[GroupUser] = field(default_factory=list)
    offset: int = 0
    limit: int = 0


@dataclass
class AddUserResult:
    group: GroupResult
    users: List[User]
    group_memberships: List[GroupUser]


class GroupService:
    def __init__(self, store: GroupStore):
        self.store = store

    async def _load_group(self, group_id: Optional[str]) -> Group:
        group_id = validate_id(group_id)
        group = await self.store.get_group(group_id)
        if group is None:
            log.info(f"Group {group_id} not found")
            raise NotFound("Group", group_id)
        return group

    async def _load_user(self, user_id: str) -> User:
        user = await self.store.get_user(user_id)
        if user is None:
            log.info(f"User {user_id} not found")
            raise NotFound("User", user_id)
        return user

    async def _present(self, actor: Actor, groups: Sequence[Group]) -> List[GroupResult]:
        counts = await self.store.count_members([group.id for group in groups])
        return [
            GroupResult(group=group, abilities=abilities_for(actor, group), member_count=counts[group.id])
            for group in groups
        ]

    async def create(self, actor: Actor, name: Optional[str]) -> GroupResult:
        """Create a group in the actor's team (admin only)."""
        require_actor(actor)
        authorize(actor, Action.CREATE, TeamScope(team_id=actor.team_id))
        name = validate_name(name)

        async with self.store.transaction():
            group = await self.store.create_group(actor.team_id, name, created_by_id=actor.id)
            await record_event(
                self.store.db, "groups.create", actor.id, actor.team_id,
                model_id=group.id, data={"name": name}
            )

        log.info(f"User {actor.id} created group {group.id} in team {actor.team_id}")
        return GroupResult(group=group, abilities=abilities_for(actor, group), member_count=0)

    async def update(self, actor: Actor, group_id: Optional[str], name: Optional[str]) -> GroupResult:
        """Rename a group (admin of the owning team only)."""
        require_actor(actor)
        group = await self._load_group(group_id)
        authorize(actor, Action.UPDATE, group)
        name = validate_name(name)

        previous = group.name
        async with self.store.transaction():
            group = await self.store.update_group(group, name)
            await record_event(
                self.store.db, "groups.update", actor.id, group.team_id,
                model_id=group.id, data={"name": name, "previous_name": previous}
            )

        log.info(f"User {actor.id} renamed group {group.id}")
        return (await self._present(actor, [group]))[0]

    async def delete(self, actor: Actor, group_id: Optional[str]) -> bool:
        """Delete a group and its memberships (admin of the owning team only)."""
        require_actor(actor)
        group = await self._load_group(group_id)
        authorize(actor, Action.DELETE, group)

        async with self.store.transaction():
            await self.store.delete_group(group)
            await record_event(
                self.store.db, "groups.delete", actor.id, group.team_id,
                model_id=group.id, data={"name": group.name}
            )

        log.info(f"User {actor.id} deleted group {group.id}")
        return True

    async def list(
        self,
        actor: Actor,
        offset: Optional[int] = None,
        limit: Optional[int] = None
    ) -> GroupListResult:
        """
        Groups of the actor's team, each with the actor's abilities, plus the
        offset and limit actually applied.

        Team scoping is a query filter here, so other teams' groups are never
        candidates and nothing is denied per item.
        """
        require_actor(actor)
        offset, limit = validate_pagination(offset, limit)
        groups = await self.store.list_groups(actor.team_id, offset=offset, limit=limit)
        return GroupListResult(groups=await self._present(actor, groups), offset=offset, limit=limit)

    async def info(self, actor: Actor, group_id: Optional[str]) -> GroupResult:
        require_actor(actor)
        group = await self._load_group(group_id)
        authorize(actor, Action.READ, group)
        return (await self._present(actor, [group]))[0]

    async def memberships(
        self,
        actor: Actor,
        group_id: Optional[str],
        query: Optional[str] = None,
        offset: Optional[int] = None,
        limit: Optional[int] = None
    ) -> MembershipsResult:
        """
        Members of a group, optionally filtered by a case-insensitive
        substring of their name.
        """
        require_actor(actor)
        group = await self._load_group(group_id)
        authorize(actor, Action.READ, group)
        offset, limit = validate_pagination(offset, limit)

        name_filter = query.strip() if query else None
        rows = await self.store.list_memberships(
            group.id, group.team_id, name_filter=name_filter or None, offset=offset, limit=limit
        )
        return MembershipsResult(
            users=[user for user, _ in rows],
            group_memberships=[membership for _, membership in rows],
            offset=offset,
            limit=limit,
        )

    async def add_user(self, actor: Actor, group_id: Optional[str], user_id: Optional[str]) -> AddUserResult:
        """
        Grant a same-team user membership of a group.

        Adding an existing member is a no-op that returns the existing row.
        """
        require_actor(actor)
        group = await self._load_group(group_id)
        authorize(actor, Action.ADD_USER, group)
        user = await self._load_user(validate_id(user_id, field="user_id"))
        authorize(actor, Action.READ, user)

        group_id, user_id = group.id, user.id
        membership = await self.store.get_membership(group_id, user_id)
        if membership is None:
            try:
                async with self.store.transaction():
                    membership = await self.store.add_membership(group, user, created_by_id=actor.id)
                    await record_event(
                        self.store.db, "groups.add_user", actor.id, group.team_id,
                        model_id=group_id, data={"user_id": user_id, "name": group.name}
                    )
            except IntegrityError:
                # A concurrent request added the same membership first
                membership = await self.store.get_membership(group_id, user_id)
                if membership is None:
                    raise
                await self.store.reload(group, user)
                log.info(f"User {user_id} was already added to group {group_id}")
            else:
                log.info(f"User {actor.id} added user {user_id} to group {group_id}")

        return AddUserResult(
            group=(await self._present(actor, [group]))[0],
            users=[user],
            group_memberships=[membership],
        )

    async def remove_user(self, actor: Actor, group_id: Optional[str], user_id: Optional[str]) -> GroupResult:
        """Revoke a user's membership of a group."""
        require_actor(actor)
        group = await self._load_group(group_id)
        authorize(actor, Action.REMOVE_USER, group)
        user = await self._load_user(validate_id(user_id, field="user_id"))
        authorize(actor, Action.READ, user)

        membership = await self.store.get_membership(group.id, user.id)
        if membership is None:
            raise NotFound("Membership", f"{group.id}:{user.id}")

        async with self.store.transaction():
            await self.store.remove_membership(membership)
            await record_event(
                self.store.db, "groups.remove_user", actor.id, group.team_id,
                model_id=group.id, data={"user_id": user.id, "name": group.name}
            )

        log.info(f"User {actor.id} removed user {user.id} from group {group.id}")
        return (await self._present(actor, [group]))[0]
