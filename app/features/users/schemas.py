"""
Pydantic schemas for user-related responses.
"""
from pydantic import BaseModel


class UserPublic(BaseModel):
    """Public user information (limited fields)."""
    id: str
    name: str
    is_admin: bool

    model_config = {"from_attributes": True}
