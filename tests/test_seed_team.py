"""
Tests for the team seed script.
"""
import pytest

from scripts.seed_team import seed_team
from tests.factories import build_user


@pytest.mark.asyncio
async def test_seed_creates_admin_and_member(db):
    admin, member = await seed_team(db, "Acme", "admin@acme.test", "member@acme.test")

    assert admin.is_admin is True
    assert member.is_admin is False
    assert admin.team_id == member.team_id


@pytest.mark.asyncio
async def test_seed_is_repeatable(db):
    first = await seed_team(db, "Acme", "admin@acme.test", "member@acme.test")
    second = await seed_team(db, "Acme", "admin@acme.test", "member@acme.test")

    assert [user.id for user in second] == [user.id for user in first]


@pytest.mark.asyncio
async def test_seed_rejects_email_of_another_team(db):
    other = await build_user(db)

    with pytest.raises(ValueError):
        await seed_team(db, "Acme", other.email, "member@acme.test")
