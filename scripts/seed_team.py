"""
Seed script to create a team with an admin and a member.

Run this script to get a working team and tokens for calling the API:
- One team
- One admin user (may create, update and delete groups)
- One member user (may only read)

Usage:
    uv run python -m scripts.seed_team --team "Acme" --admin-email admin@acme.test
"""
import argparse
import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db, init_db
from app.features.teams.models import Team
from app.features.users.auth import issue_token
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


async def get_or_create_team(db: AsyncSession, name: str) -> Team:
    result = await db.execute(select(Team).where(Team.name == name))
    existing = result.scalars().first()
    if existing:
        log.debug(f"Team '{name}' already exists, reusing {existing.id}")
        return existing

    team = Team(name=name)
    db.add(team)
    await db.flush()
    log.info(f"Created team '{name}' ({team.id})")
    return team


async def get_or_create_user(db: AsyncSession, team: Team, name: str, email: str, is_admin: bool) -> User:
    """
    Find the team's user with this email, or create it.

    Raises:
        ValueError: If the email already belongs to a user of another team
    """
    result = await db.execute(select(User).where(User.email == email))
    existing = result.scalars().first()
    if existing:
        if existing.team_id != team.id:
            raise ValueError(f"Email '{email}' already belongs to a user of team {existing.team_id}")
        log.debug(f"User '{email}' already exists, skipping")
        return existing

    user = User(team_id=team.id, name=name, email=email, is_admin=is_admin)
    db.add(user)
    await db.flush()
    log.info(f"Created {'admin' if is_admin else 'member'} '{email}' in team '{team.name}'")
    return user


async def seed_team(db: AsyncSession, team_name: str, admin_email: str, member_email: str) -> tuple[User, User]:
    """
    Create the team and its two users, reusing any that already exist.

    Returns:
        (admin, member)
    """
    team = await get_or_create_team(db, team_name)
    admin = await get_or_create_user(db, team, "Admin", admin_email, is_admin=True)
    member = await get_or_create_user(db, team, "Member", member_email, is_admin=False)

    await db.commit()
    return admin, member


async def main(args: argparse.Namespace):
    """Main function to seed a team."""
    log.info("Starting team seeding...")

    log.info("Initializing database tables...")
    await init_db()

    async for db in get_db():
        try:
            admin, member = await seed_team(db, args.team, args.admin_email, args.member_email)

            log.info("Team seeding completed successfully!")
            print(f"admin  {admin.id}  {issue_token(admin)}")
            print(f"member {member.id}  {issue_token(member)}")

        except Exception as e:
            log.error(f"Error seeding team: {e}", exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a team with an admin and a member")
    parser.add_argument("--team", default="Default Team")
    parser.add_argument("--admin-email", default="admin@example.com")
    parser.add_argument("--member-email", default="member@example.com")
    asyncio.run(main(parser.parse_args()))
