"""
Helpers for writing events.
"""
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.events.models import Event
from app.utils import get_logger


log = get_logger(__name__)


async def record_event(
    db: AsyncSession,
    name: str,
    actor_id: Optional[str],
    team_id: str,
    model_id: Optional[str] = None,
    data: Optional[Dict[str, Any]] = None
) -> Event:
    """
    Add an event to the current transaction.

    The caller owns the transaction: the event is flushed, not committed, so
    it lands together with the change it describes or not at all.

    Args:
        db: Database session
        name: Dotted event name (e.g. "groups.create")
        actor_id: User performing the action
        team_id: Team the action happened in
        model_id: ID of the affected record
        data: Additional details

    Returns:
        The pending Event
    """
    event = Event(
        name=name,
        actor_id=actor_id,
        team_id=team_id,
        model_id=model_id,
        data=data,
    )
    db.add(event)
    await db.flush()

    log.info(f"Event: {name} actor={actor_id} model={model_id} team={team_id}")

    return event
