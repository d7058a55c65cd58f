"""
Unit tests for the policy engine.
"""
from dataclasses import dataclass

import pytest

from app.core.errors import AuthenticationRequired, Forbidden
from app.features.policies.engine import (
    ABILITIES,
    Action,
    Actor,
    Outcome,
    Rule,
    TeamScope,
    abilities_for,
    authorize,
    can,
    evaluate,
)


@dataclass
class FakeGroup:
    id: str
    team_id: str


class TestPolicyEngine:
    """Test cases for evaluate/authorize/abilities_for."""

    @pytest.fixture
    def admin(self):
        return Actor(id="admin-1", team_id="team-a", is_admin=True)

    @pytest.fixture
    def member(self):
        return Actor(id="member-1", team_id="team-a", is_admin=False)

    @pytest.fixture
    def group(self):
        return FakeGroup(id="group-1", team_id="team-a")

    @pytest.fixture
    def foreign_group(self):
        return FakeGroup(id="group-2", team_id="team-b")

    def test_member_can_read(self, member, group):
        """Same-team members may read."""
        decision = evaluate(member, Action.READ, group)
        assert decision.allowed is True
        assert decision.rule == "member_read"

    @pytest.mark.parametrize("action", [
        Action.UPDATE, Action.DELETE, Action.ADD_USER, Action.REMOVE_USER
    ])
    def test_member_cannot_mutate(self, member, group, action):
        decision = evaluate(member, action, group)
        assert decision.allowed is False
        assert decision.reason == "admin_required"
        assert decision.rule == "member_mutation"

    @pytest.mark.parametrize("action", list(Action))
    def test_admin_cross_team_denied_for_every_action(self, admin, foreign_group, action):
        """Team scope wins over the admin flag."""
        decision = evaluate(admin, action, foreign_group)
        assert decision.allowed is False
        assert decision.reason == "team_mismatch"
        assert decision.rule == "team_scope"

    def test_admin_can_mutate_same_team(self, admin, group):
        for action in (Action.UPDATE, Action.DELETE, Action.ADD_USER, Action.REMOVE_USER):
            assert can(admin, action, group) is True

    def test_create_uses_team_scope(self, admin, member):
        assert can(admin, Action.CREATE, TeamScope(team_id=admin.team_id)) is True
        assert can(member, Action.CREATE, TeamScope(team_id=member.team_id)) is False
        assert can(admin, "create", TeamScope(team_id="team-b")) is False

    def test_no_matching_rule_denies(self, member, group):
        """An empty rule table denies everything by default."""
        decision = evaluate(member, Action.READ, group, rules=())
        assert decision.allowed is False
        assert decision.rule == "default"
        assert decision.reason == "no_matching_rule"

    def test_rules_are_evaluated_in_order(self, member, group):
        allow_all = Rule(name="allow_all", applies=lambda a, act, r: True, outcome=Outcome.ALLOW)
        deny_all = Rule(name="deny_all", applies=lambda a, act, r: True, outcome=Outcome.DENY, reason="nope")

        assert evaluate(member, Action.DELETE, group, rules=(allow_all, deny_all)).allowed is True
        decision = evaluate(member, Action.DELETE, group, rules=(deny_all, allow_all))
        assert decision.allowed is False
        assert decision.rule == "deny_all"

    def test_abilities_for_member(self, member, group):
        assert abilities_for(member, group) == {
            "read": True,
            "update": False,
            "delete": False,
            "add_user": False,
            "remove_user": False,
        }

    def test_abilities_for_admin(self, admin, group):
        abilities = abilities_for(admin, group)
        assert list(abilities) == [ability.value for ability in ABILITIES]
        assert all(abilities.values())

    def test_abilities_for_foreign_resource(self, admin, foreign_group):
        assert not any(abilities_for(admin, foreign_group).values())

    def test_abilities_follow_role_changes(self, group):
        """Nothing is cached between calls."""
        before = Actor(id="u", team_id="team-a", is_admin=False)
        after = Actor(id="u", team_id="team-a", is_admin=True)
        assert abilities_for(before, group)["update"] is False
        assert abilities_for(after, group)["update"] is True

    def test_authorize_returns_abilities(self, admin, group):
        assert authorize(admin, Action.UPDATE, group) == abilities_for(admin, group)

    def test_authorize_raises_forbidden_with_reason(self, member, group):
        with pytest.raises(Forbidden) as exc_info:
            authorize(member, Action.DELETE, group)

        assert exc_info.value.reason == "admin_required"
        assert exc_info.value.rule == "member_mutation"
        payload = exc_info.value.to_response()
        assert payload["status"] == 403
        assert "admin_required" not in str(payload)

    def test_authorize_without_actor(self, group):
        with pytest.raises(AuthenticationRequired):
            authorize(None, Action.READ, group)

    def test_unknown_action_rejected(self, member, group):
        with pytest.raises(ValueError):
            evaluate(member, "archive", group)
