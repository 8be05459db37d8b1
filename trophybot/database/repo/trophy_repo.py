# trophybot/database/repo/trophy_repo.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from trophybot.database.models import TrophyEvent


async def add_event(
    session: AsyncSession,
    *,
    player_id: int,
    previous_trophies: int,
    new_trophies: int,
    trophy_change: int,
    is_gain: bool,
    recorded_at: datetime,
) -> TrophyEvent:
    ev = TrophyEvent(
        player_id=player_id,
        previous_trophies=previous_trophies,
        new_trophies=new_trophies,
        trophy_change=trophy_change,
        is_gain=is_gain,
        recorded_at=recorded_at,
    )
    session.add(ev)
    await session.flush()
    return ev


async def list_events(
    session: AsyncSession,
    player_id: int,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    end_inclusive: bool = False,
    limit: int | None = None,
    newest_first: bool = True,
) -> list[TrophyEvent]:
    q = select(TrophyEvent).where(TrophyEvent.player_id == player_id)

    if start is not None:
        q = q.where(TrophyEvent.recorded_at >= start)
    if end is not None:
        q = q.where(TrophyEvent.recorded_at <= end if end_inclusive else TrophyEvent.recorded_at < end)

    if newest_first:
        q = q.order_by(TrophyEvent.recorded_at.desc(), TrophyEvent.id.desc())
    else:
        q = q.order_by(TrophyEvent.recorded_at.asc(), TrophyEvent.id.asc())

    if limit is not None:
        q = q.limit(limit)

    res = await session.execute(q)
    return list(res.scalars().all())


async def delete_events_before(session: AsyncSession, cutoff: datetime) -> int:
    res = await session.execute(delete(TrophyEvent).where(TrophyEvent.recorded_at < cutoff))
    return int(res.rowcount or 0)
