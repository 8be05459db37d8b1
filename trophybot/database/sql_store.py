# trophybot/database/sql_store.py
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from trophybot.database.models import DailyStats, TrackedPlayer, TrophyEvent
from trophybot.database.repo import daily_stats_repo, players_repo, trophy_repo
from trophybot.database.session import Database
from trophybot.database.store import (
    DailyAggregate,
    DailyIncrement,
    EventFilter,
    LedgerEvent,
    PlayerRecord,
)
from trophybot.database.tx import transactional
from trophybot.services.errors import StorageError


def _to_db(dt: datetime | None) -> datetime | None:
    # columns hold naive UTC
    if dt is None:
        return None
    if dt.tzinfo is None:
        raise ValueError(f"naive datetime passed to store: {dt!r}")
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    return dt.replace(tzinfo=timezone.utc)


def _player(row: TrackedPlayer) -> PlayerRecord:
    return PlayerRecord(
        id=int(row.id),
        tag=row.player_tag,
        name=row.name or "",
        clan_name=row.clan_name,
        current_trophies=int(row.current_trophies or 0),
        is_tracking=bool(row.is_tracking),
        last_updated=_from_db(row.last_updated),
    )


def _event(row: TrophyEvent) -> LedgerEvent:
    return LedgerEvent(
        id=int(row.id),
        player_id=int(row.player_id),
        previous_trophies=int(row.previous_trophies),
        new_trophies=int(row.new_trophies),
        trophy_change=int(row.trophy_change),
        is_gain=bool(row.is_gain),
        recorded_at=_from_db(row.recorded_at),
    )


def _aggregate(row: DailyStats) -> DailyAggregate:
    return DailyAggregate(
        player_id=int(row.player_id),
        day=row.day,
        gain_count=int(row.gain_count or 0),
        gain_total=int(row.gain_total or 0),
        loss_count=int(row.loss_count or 0),
        loss_total=int(row.loss_total or 0),
        net_change=int(row.net_change or 0),
    )


class SqlTrophyStore:
    """
    TrophyStore on SQLAlchemy.

    Unbound: every call runs in its own session and commits.
    Bound (from `transaction()`): calls share one session and commit together.
    """

    def __init__(self, db: Database, *, session: AsyncSession | None = None) -> None:
        self.db = db
        self._bound = session

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        if self._bound is not None:
            try:
                yield self._bound
            except SQLAlchemyError as e:
                raise StorageError(str(e)) from e
            return

        try:
            async with self.db.session() as s:
                async with transactional(s):
                    yield s
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlTrophyStore"]:
        if self._bound is not None:
            async with transactional(self._bound):
                yield self
            return

        try:
            async with self.db.session() as s:
                async with transactional(s):
                    yield SqlTrophyStore(self.db, session=s)
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e

    # ------------------------
    # players
    # ------------------------

    async def get_player(self, tag: str) -> Optional[PlayerRecord]:
        async with self._session() as s:
            row = await players_repo.get_by_tag(s, tag)
            return _player(row) if row else None

    async def upsert_player(self, record: PlayerRecord) -> PlayerRecord:
        async with self._session() as s:
            row = await players_repo.upsert_player(
                s,
                tag=record.tag,
                name=record.name,
                clan_name=record.clan_name,
                current_trophies=record.current_trophies,
                is_tracking=record.is_tracking,
                last_updated=_to_db(record.last_updated),
            )
            return _player(row)

    async def list_tracked_players(self) -> list[PlayerRecord]:
        async with self._session() as s:
            return [_player(r) for r in await players_repo.list_tracked(s)]

    # ------------------------
    # ledger
    # ------------------------

    async def append_trophy_event(self, event: LedgerEvent) -> LedgerEvent:
        async with self._session() as s:
            row = await trophy_repo.add_event(
                s,
                player_id=event.player_id,
                previous_trophies=event.previous_trophies,
                new_trophies=event.new_trophies,
                trophy_change=event.trophy_change,
                is_gain=event.is_gain,
                recorded_at=_to_db(event.recorded_at),
            )
            return _event(row)

    async def list_trophy_events(self, player_id: int, flt: Optional[EventFilter] = None) -> list[LedgerEvent]:
        flt = flt or EventFilter()
        async with self._session() as s:
            rows = await trophy_repo.list_events(
                s,
                player_id,
                start=_to_db(flt.start),
                end=_to_db(flt.end),
                end_inclusive=flt.end_inclusive,
                limit=flt.limit,
                newest_first=flt.newest_first,
            )
            return [_event(r) for r in rows]

    # ------------------------
    # daily aggregates
    # ------------------------

    async def get_daily_stats(self, player_id: int, day: date) -> Optional[DailyAggregate]:
        async with self._session() as s:
            row = await daily_stats_repo.get_day(s, player_id, day)
            return _aggregate(row) if row else None

    async def list_daily_stats(
        self,
        player_id: int,
        *,
        since: Optional[date] = None,
        until: Optional[date] = None,
        before: Optional[date] = None,
    ) -> list[DailyAggregate]:
        async with self._session() as s:
            rows = await daily_stats_repo.list_days(s, player_id, since=since, until=until, before=before)
            return [_aggregate(r) for r in rows]

    async def list_daily_stats_for_day(self, day: date) -> list[DailyAggregate]:
        async with self._session() as s:
            return [_aggregate(r) for r in await daily_stats_repo.list_for_day(s, day)]

    async def upsert_daily_stats_increment(self, player_id: int, day: date, increment: DailyIncrement) -> None:
        async with self._session() as s:
            await daily_stats_repo.increment(
                s,
                player_id=player_id,
                day=day,
                gain_count=increment.gain_count,
                gain_total=increment.gain_total,
                loss_count=increment.loss_count,
                loss_total=increment.loss_total,
                net_change=increment.net_change,
            )

    # ------------------------
    # retention
    # ------------------------

    async def delete_trophy_events_before(self, instant: datetime) -> int:
        async with self._session() as s:
            return await trophy_repo.delete_events_before(s, _to_db(instant))

    async def delete_daily_stats_before(self, day: date) -> int:
        async with self._session() as s:
            return await daily_stats_repo.delete_days_before(s, day)
