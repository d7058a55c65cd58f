from typing import Dict
from pydantic import BaseModel, Field

from app.features.policies.engine import AbilitySet


class PolicyResponse(BaseModel):
    """Abilities of the current actor on one resource, for UI gating."""
    id: str = Field(..., description="Resource ID")
    abilities: Dict[str, bool]


def present_policy(resource_id: str, abilities: AbilitySet) -> PolicyResponse:
    return PolicyResponse(id=resource_id, abilities=dict(abilities))
