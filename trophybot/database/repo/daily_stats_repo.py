# trophybot/database/repo/daily_stats_repo.py
from __future__ import annotations

from datetime import date

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from trophybot.database.models import DailyStats

_COUNTERS = ("gain_count", "gain_total", "loss_count", "loss_total", "net_change")


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite_insert
    if dialect == "postgresql":
        return pg_insert
    raise RuntimeError(f"Atomic upsert not supported for dialect {dialect!r}")


async def increment(
    session: AsyncSession,
    *,
    player_id: int,
    day: date,
    gain_count: int = 0,
    gain_total: int = 0,
    loss_count: int = 0,
    loss_total: int = 0,
    net_change: int = 0,
) -> None:
    """
    INSERT ... ON CONFLICT (player_id, day) DO UPDATE SET col = col + delta.

    One statement, so overlapping writers for the same row never lose an
    update. A zero increment just guarantees the row exists.
    """
    values = {
        "gain_count": gain_count,
        "gain_total": gain_total,
        "loss_count": loss_count,
        "loss_total": loss_total,
        "net_change": net_change,
    }
    insert = _insert_for(session)
    stmt = insert(DailyStats).values(player_id=player_id, day=day, **values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["player_id", "day"],
        set_={col: getattr(DailyStats, col) + stmt.excluded[col] for col in _COUNTERS},
    )
    await session.execute(stmt)


async def get_day(session: AsyncSession, player_id: int, day: date) -> DailyStats | None:
    res = await session.execute(
        select(DailyStats).where(
            DailyStats.player_id == player_id,
            DailyStats.day == day,
        )
    )
    return res.scalar_one_or_none()


async def list_days(
    session: AsyncSession,
    player_id: int,
    *,
    since: date | None = None,
    until: date | None = None,
    before: date | None = None,
) -> list[DailyStats]:
    """Newest day first. since/until inclusive, before exclusive."""
    q = select(DailyStats).where(DailyStats.player_id == player_id)
    if since is not None:
        q = q.where(DailyStats.day >= since)
    if until is not None:
        q = q.where(DailyStats.day <= until)
    if before is not None:
        q = q.where(DailyStats.day < before)

    res = await session.execute(q.order_by(DailyStats.day.desc()))
    return list(res.scalars().all())


async def list_for_day(session: AsyncSession, day: date) -> list[DailyStats]:
    res = await session.execute(
        select(DailyStats).where(DailyStats.day == day).order_by(DailyStats.player_id.asc())
    )
    return list(res.scalars().all())


async def delete_days_before(session: AsyncSession, cutoff: date) -> int:
    res = await session.execute(delete(DailyStats).where(DailyStats.day < cutoff))
    return int(res.rowcount or 0)
