"""
Authorization rules for team-scoped resources.

All access decisions go through `authorize()`. Rules are an ordered table of
(predicate, outcome) pairs evaluated top to bottom; the first rule whose
predicate holds decides. The team-scope rule is first, so a cross-team
request is always denied as `team_mismatch` before the actor's role is
looked at.

Resources only need a `team_id` attribute. Groups, users and `TeamScope`
(the "kind" a group is created in) all qualify.

The engine is pure: no I/O, no caching, no mutable state. Abilities are
recomputed on every call so role changes apply on the next request.
"""
import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from app.core.errors import AuthenticationRequired, Forbidden
from app.utils import get_logger


log = get_logger(__name__)


class Action(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    ADD_USER = "add_user"
    REMOVE_USER = "remove_user"


MUTATIONS = frozenset({
    Action.CREATE,
    Action.UPDATE,
    Action.DELETE,
    Action.ADD_USER,
    Action.REMOVE_USER,
})

# Abilities reported for an existing resource, in response order
ABILITIES: Tuple[Action, ...] = (
    Action.READ,
    Action.UPDATE,
    Action.DELETE,
    Action.ADD_USER,
    Action.REMOVE_USER,
)

AbilitySet = Dict[str, bool]


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, built per request and never stored."""
    id: str
    team_id: str
    is_admin: bool = False
    name: Optional[str] = None

    @classmethod
    def from_user(cls, user: Any) -> "Actor":
        return cls(id=user.id, team_id=user.team_id, is_admin=bool(user.is_admin), name=user.name)


@dataclass(frozen=True)
class TeamScope:
    """Stand-in resource for actions on a resource kind, e.g. creating a group."""
    team_id: str


class Outcome(str, enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class Rule:
    name: str
    applies: Callable[[Actor, Action, Any], bool]
    outcome: Outcome
    reason: Optional[str] = None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    rule: str
    reason: Optional[str] = None


RULES: Tuple[Rule, ...] = (
    Rule(
        name="team_scope",
        applies=lambda actor, action, resource: resource.team_id != actor.team_id,
        outcome=Outcome.DENY,
        reason="team_mismatch",
    ),
    Rule(
        name="admin_mutation",
        applies=lambda actor, action, resource: action in MUTATIONS and actor.is_admin,
        outcome=Outcome.ALLOW,
    ),
    Rule(
        name="member_mutation",
        applies=lambda actor, action, resource: action in MUTATIONS,
        outcome=Outcome.DENY,
        reason="admin_required",
    ),
    Rule(
        name="member_read",
        applies=lambda actor, action, resource: action == Action.READ,
        outcome=Outcome.ALLOW,
    ),
)


def evaluate(
    actor: Actor,
    action: Union[Action, str],
    resource: Any,
    rules: Tuple[Rule, ...] = RULES
) -> Decision:
    """
    Run the rule table and return the first matching decision.

    Unknown situations fall through to a default deny.
    """
    action = Action(action)
    for rule in rules:
        if rule.applies(actor, action, resource):
            return Decision(
                allowed=rule.outcome is Outcome.ALLOW,
                rule=rule.name,
                reason=rule.reason,
            )
    return Decision(allowed=False, rule="default", reason="no_matching_rule")


def can(actor: Actor, action: Union[Action, str], resource: Any) -> bool:
    return evaluate(actor, action, resource).allowed


def abilities_for(actor: Actor, resource: Any) -> AbilitySet:
    """Map every ability name to whether the actor holds it on the resource."""
    return {ability.value: can(actor, ability, resource) for ability in ABILITIES}


def require_actor(actor: Optional[Actor]) -> Actor:
    """Fail with AuthenticationRequired when there is no resolved caller."""
    if actor is None:
        raise AuthenticationRequired("no actor")
    return actor


def authorize(actor: Optional[Actor], action: Union[Action, str], resource: Any) -> AbilitySet:
    """
    Check that the actor may perform the action on the resource.

    Args:
        actor: Resolved caller
        action: Action being attempted
        resource: Loaded resource (anything with a `team_id`)

    Returns:
        The actor's AbilitySet on the resource

    Raises:
        AuthenticationRequired: If there is no actor
        Forbidden: If a rule denies the action
    """
    actor = require_actor(actor)
    action = Action(action)
    decision = evaluate(actor, action, resource)
    if not decision.allowed:
        log.info(
            f"Denied {action.value} on {type(resource).__name__} "
            f"{getattr(resource, 'id', resource.team_id)} for user {actor.id}: "
            f"{decision.reason} (rule {decision.rule})"
        )
        raise Forbidden(decision.reason, decision.rule)

    log.debug(f"Allowed {action.value} for user {actor.id} via rule {decision.rule}")
    return abilities_for(actor, resource)
