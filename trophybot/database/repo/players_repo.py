# trophybot/database/repo/players_repo.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trophybot.database.models import TrackedPlayer


async def get_by_tag(session: AsyncSession, tag: str) -> Optional[TrackedPlayer]:
    res = await session.execute(select(TrackedPlayer).where(TrackedPlayer.player_tag == tag))
    return res.scalar_one_or_none()


async def list_tracked(session: AsyncSession) -> list[TrackedPlayer]:
    # id order == first-seen order, leaderboard ties rely on it
    q = (
        select(TrackedPlayer)
        .where(TrackedPlayer.is_tracking.is_(True))
        .order_by(TrackedPlayer.id.asc())
    )
    res = await session.execute(q)
    return list(res.scalars().all())


async def upsert_player(
    session: AsyncSession,
    *,
    tag: str,
    name: str,
    clan_name: str | None,
    current_trophies: int,
    is_tracking: bool,
    last_updated: datetime | None,
) -> TrackedPlayer:
    player = await get_by_tag(session, tag)

    if player is None:
        player = TrackedPlayer(
            player_tag=tag,
            name=name,
            clan_name=clan_name,
            current_trophies=current_trophies,
            is_tracking=is_tracking,
            last_updated=last_updated,
        )
        session.add(player)
        await session.flush()  # player.id becomes available
        return player

    player.name = name
    player.clan_name = clan_name
    player.current_trophies = current_trophies
    player.is_tracking = is_tracking
    player.last_updated = last_updated
    await session.flush()
    return player
