"""
Pydantic schemas for group requests and responses.

Request bodies only check shape. Content rules such as a non-empty name are
enforced by the service after authorization.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.features.policies.schemas import PolicyResponse
from app.features.users.schemas import UserPublic


# ============================================================================
# Request Schemas
# ============================================================================

class TokenRequest(BaseModel):
    """Every request may carry its token in the body instead of a header."""
    token: Optional[str] = Field(None, description="API token (alternative to the Authorization header)")


class GroupCreateRequest(TokenRequest):
    name: Optional[str] = Field(None, description="Group name")


class GroupIdRequest(TokenRequest):
    id: str = Field(..., description="Group ID")


class GroupUpdateRequest(GroupIdRequest):
    name: Optional[str] = Field(None, description="New group name")


class GroupListRequest(TokenRequest):
    offset: Optional[int] = Field(None, description="Number of groups to skip")
    limit: Optional[int] = Field(None, description="Maximum number of groups to return")


class GroupMembershipsRequest(GroupIdRequest):
    query: Optional[str] = Field(None, description="Filter members by name (case-insensitive substring)")
    offset: Optional[int] = None
    limit: Optional[int] = None


class GroupUserRequest(GroupIdRequest):
    user_id: str = Field(..., description="User ID")


# ============================================================================
# Response Schemas
# ============================================================================

class GroupResponse(BaseModel):
    id: str
    name: str
    team_id: str
    member_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GroupMembershipResponse(BaseModel):
    id: str
    team_id: str
    group_id: str
    user_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    offset: int
    limit: int


class GroupEnvelope(BaseModel):
    data: GroupResponse
    policies: List[PolicyResponse]


class GroupListEnvelope(BaseModel):
    pagination: Pagination
    data: List[GroupResponse]
    policies: List[PolicyResponse]


class MembershipsData(BaseModel):
    users: List[UserPublic]
    group_memberships: List[GroupMembershipResponse]


class MembershipsEnvelope(BaseModel):
    pagination: Pagination
    data: MembershipsData


class AddUserData(BaseModel):
    users: List[UserPublic]
    group_memberships: List[GroupMembershipResponse]
    groups: List[GroupResponse]


class AddUserEnvelope(BaseModel):
    data: AddUserData
    policies: List[PolicyResponse]


class RemoveUserData(BaseModel):
    groups: List[GroupResponse]


class RemoveUserEnvelope(BaseModel):
    data: RemoveUserData
    policies: List[PolicyResponse]


class SuccessResponse(BaseModel):
    success: bool = True
