from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Optional, Union

from trophybot.database.store import (
    DailyAggregate,
    DailyIncrement,
    EventFilter,
    LedgerEvent,
    PlayerRecord,
)
from trophybot.services.clash_api import LEGEND_LEAGUE_ID, PlayerSnapshot
from trophybot.services.errors import StorageError


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class MemoryTrophyStore:
    """In-memory TrophyStore. `fail_on` holds method names that raise StorageError."""

    def __init__(self) -> None:
        self.players: dict[str, PlayerRecord] = {}
        self.events: list[LedgerEvent] = []
        self.daily: dict[tuple[int, date], DailyAggregate] = {}
        self.fail_on: set[str] = set()
        self.calls: list[str] = []
        self._next_player_id = 1
        self._next_event_id = 1

    def _op(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise StorageError(f"{name} failed")

    @asynccontextmanager
    async def transaction(self):
        saved = (dict(self.players), list(self.events), dict(self.daily))
        try:
            yield self
        except BaseException:
            self.players, self.events, self.daily = saved
            raise

    async def get_player(self, tag: str) -> Optional[PlayerRecord]:
        self._op("get_player")
        return self.players.get(tag)

    async def upsert_player(self, record: PlayerRecord) -> PlayerRecord:
        self._op("upsert_player")
        existing = self.players.get(record.tag)
        if existing is None:
            record = replace(record, id=self._next_player_id)
            self._next_player_id += 1
        else:
            record = replace(record, id=existing.id)
        self.players[record.tag] = record
        return record

    async def list_tracked_players(self) -> list[PlayerRecord]:
        self._op("list_tracked_players")
        return sorted((p for p in self.players.values() if p.is_tracking), key=lambda p: p.id)

    async def append_trophy_event(self, event: LedgerEvent) -> LedgerEvent:
        self._op("append_trophy_event")
        event = replace(event, id=self._next_event_id)
        self._next_event_id += 1
        self.events.append(event)
        return event

    async def list_trophy_events(self, player_id: int, flt: Optional[EventFilter] = None) -> list[LedgerEvent]:
        self._op("list_trophy_events")
        flt = flt or EventFilter()
        rows = [e for e in self.events if e.player_id == player_id and flt.matches(e.recorded_at)]
        rows.sort(key=lambda e: (e.recorded_at, e.id), reverse=flt.newest_first)
        if flt.limit is not None:
            rows = rows[: flt.limit]
        return rows

    async def get_daily_stats(self, player_id: int, day: date) -> Optional[DailyAggregate]:
        self._op("get_daily_stats")
        return self.daily.get((player_id, day))

    async def list_daily_stats(self, player_id, *, since=None, until=None, before=None) -> list[DailyAggregate]:
        self._op("list_daily_stats")
        rows = [
            a for (pid, day), a in self.daily.items()
            if pid == player_id
            and (since is None or day >= since)
            and (until is None or day <= until)
            and (before is None or day < before)
        ]
        return sorted(rows, key=lambda a: a.day, reverse=True)

    async def list_daily_stats_for_day(self, day: date) -> list[DailyAggregate]:
        self._op("list_daily_stats_for_day")
        return [a for (_, d), a in sorted(self.daily.items()) if d == day]

    async def upsert_daily_stats_increment(self, player_id: int, day: date, increment: DailyIncrement) -> None:
        self._op("upsert_daily_stats_increment")
        current = self.daily.get((player_id, day)) or DailyAggregate.zero(player_id, day)
        self.daily[(player_id, day)] = current.merged(increment)

    async def delete_trophy_events_before(self, instant: datetime) -> int:
        self._op("delete_trophy_events_before")
        before = len(self.events)
        self.events = [e for e in self.events if e.recorded_at >= instant]
        return before - len(self.events)

    async def delete_daily_stats_before(self, day: date) -> int:
        self._op("delete_daily_stats_before")
        stale = [k for k in self.daily if k[1] < day]
        for k in stale:
            del self.daily[k]
        return len(stale)


def snapshot(tag: str, trophies: int, *, name: str | None = None, clan: str | None = "Clan", eligible: bool = True) -> PlayerSnapshot:
    return PlayerSnapshot(
        tag=tag,
        name=name or f"Player {tag}",
        clan_name=clan,
        trophies=trophies,
        league_id=LEGEND_LEAGUE_ID if eligible else 29000021,
        league_name="Legend League" if eligible else "Titan League I",
        eligible=eligible,
    )


Scripted = Union[PlayerSnapshot, BaseException]


class ScriptedSource:
    """
    Snapshot source replaying per-tag results (last one repeats).
    Tracks how many fetches are in flight at once.
    """

    def __init__(self, script: dict[str, list[Scripted]] | None = None, *, delay: float = 0.0) -> None:
        self.script = script or {}
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def set(self, tag: str, *results: Scripted) -> None:
        self.script[tag] = list(results)

    async def fetch(self, tag: str) -> PlayerSnapshot:
        self.calls.append(tag)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            results = self.script[tag]
            result = results.pop(0) if len(results) > 1 else results[0]
        finally:
            self.in_flight -= 1

        if isinstance(result, BaseException):
            raise result
        return result
