"""
Group API routes.

RPC-style endpoints (`POST /api/groups.<method>`). Every endpoint requires an
authenticated actor; the actor dependency runs before the body is validated,
so unauthenticated calls always get the same 401 payload.
"""
from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.core.rate_limit import limiter, rate_limit
from app.features.groups.schemas import (
    AddUserData,
    AddUserEnvelope,
    GroupCreateRequest,
    GroupEnvelope,
    GroupIdRequest,
    GroupListEnvelope,
    GroupListRequest,
    GroupMembershipResponse,
    GroupMembershipsRequest,
    GroupResponse,
    GroupUpdateRequest,
    GroupUserRequest,
    MembershipsData,
    MembershipsEnvelope,
    Pagination,
    RemoveUserData,
    RemoveUserEnvelope,
    SuccessResponse,
)
from app.features.groups.service import GroupResult, GroupService
from app.features.groups.store import GroupStore
from app.features.policies.engine import Actor
from app.features.policies.schemas import PolicyResponse, present_policy
from app.features.users.dependencies import get_current_actor
from app.features.users.schemas import UserPublic


router = APIRouter()


def get_group_service(db: Annotated[AsyncSession, Depends(get_db)]) -> GroupService:
    return GroupService(GroupStore(db))


def present_group(result: GroupResult) -> GroupResponse:
    response = GroupResponse.model_validate(result.group)
    response.member_count = result.member_count
    return response


def present_policies(results: List[GroupResult]) -> List[PolicyResponse]:
    return [present_policy(result.group.id, result.abilities) for result in results]


@router.post("/groups.create", response_model=GroupEnvelope)
@limiter.limit(rate_limit)
async def create_group(
    request: Request,
    payload: GroupCreateRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[GroupService, Depends(get_group_service)]
):
    """Create a group in the caller's team (admin only)."""
    result = await service.create(actor, payload.name)
    return GroupEnvelope(data=present_group(result), policies=present_policies([result]))


@router.post("/groups.update", response_model=GroupEnvelope)
@limiter.limit(rate_limit)
async def update_group(
    request: Request,
    payload: GroupUpdateRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[GroupService, Depends(get_group_service)]
):
    """Rename a group (admin only)."""
    result = await service.update(actor, payload.id, payload.name)
    return GroupEnvelope(data=present_group(result), policies=present_policies([result]))


@router.post("/groups.delete", response_model=SuccessResponse)
@limiter.limit(rate_limit)
async def delete_group(
    request: Request,
    payload: GroupIdRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[GroupService, Depends(get_group_service)]
):
    """Delete a group and all of its memberships (admin only)."""
    await service.delete(actor, payload.id)
    return SuccessResponse(success=True)


@router.post("/groups.list", response_model=GroupListEnvelope)
@limiter.limit(rate_limit)
async def list_groups(
    request: Request,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[GroupService, Depends(get_group_service)],
    payload: Optional[GroupListRequest] = None
):
    """List the groups of the caller's team."""
    payload = payload or GroupListRequest()
    result = await service.list(actor, offset=payload.offset, limit=payload.limit)
    return GroupListEnvelope(
        pagination=Pagination(offset=result.offset, limit=result.limit),
        data=[present_group(group) for group in result.groups],
        policies=present_policies(result.groups),
    )


@router.post("/groups.info", response_model=GroupEnvelope)
@limiter.limit(rate_limit)
async def group_info(
    request: Request,
    payload: GroupIdRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[GroupService, Depends(get_group_service)]
):
    """Get a single group."""
    result = await service.info(actor, payload.id)
    return GroupEnvelope(data=present_group(result), policies=present_policies([result]))


@router.post("/groups.memberships", response_model=MembershipsEnvelope)
@limiter.limit(rate_limit)
async def group_memberships(
    request: Request,
    payload: GroupMembershipsRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[GroupService, Depends(get_group_service)]
):
    """List the members of a group, optionally filtered by name."""
    result = await service.memberships(
        actor, payload.id, query=payload.query, offset=payload.offset, limit=payload.limit
    )
    return MembershipsEnvelope(
        pagination=Pagination(offset=result.offset, limit=result.limit),
        data=MembershipsData(
            users=[UserPublic.model_validate(user) for user in result.users],
            group_memberships=[
                GroupMembershipResponse.model_validate(membership)
                for membership in result.group_memberships
            ],
        ),
    )


@router.post("/groups.add_user", response_model=AddUserEnvelope)
@limiter.limit(rate_limit)
async def add_user_to_group(
    request: Request,
    payload: GroupUserRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[GroupService, Depends(get_group_service)]
):
    """Add a user of the same team to a group (admin only)."""
    result = await service.add_user(actor, payload.id, payload.user_id)
    return AddUserEnvelope(
        data=AddUserData(
            users=[UserPublic.model_validate(user) for user in result.users],
            group_memberships=[
                GroupMembershipResponse.model_validate(membership)
                for membership in result.group_memberships
            ],
            groups=[present_group(result.group)],
        ),
        policies=present_policies([result.group]),
    )


@router.post("/groups.remove_user", response_model=RemoveUserEnvelope)
@limiter.limit(rate_limit)
async def remove_user_from_group(
    request: Request,
    payload: GroupUserRequest,
    actor: Annotated[Actor, Depends(get_current_actor)],
    service: Annotated[GroupService, Depends(get_group_service)]
):
    """Remove a user from a group (admin only)."""
    result = await service.remove_user(actor, payload.id, payload.user_id)
    return RemoveUserEnvelope(
        data=RemoveUserData(groups=[present_group(result)]),
        policies=present_policies([result]),
    )
