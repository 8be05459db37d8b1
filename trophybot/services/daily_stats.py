# trophybot/services/daily_stats.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from trophybot.database.store import (
    ZERO_INCREMENT,
    DailyAggregate,
    DailyIncrement,
    LedgerEvent,
    TrophyStore,
)
from trophybot.services.ledger import Ledger
from trophybot.utils.windows import game_day_bounds


def aggregate_events(player_id: int, day: date, events: Iterable[LedgerEvent]) -> DailyAggregate:
    agg = DailyAggregate.zero(player_id, day)
    for ev in events:
        agg = agg.merged(DailyIncrement.for_event(ev))
    return agg


class DailyStatsStore:
    """
    Per (player, game day) counters.

    Rows are only ever changed by increments. Reads never fail for a missing
    day: `get_day` falls back to the ledger, `get_range` fills zeros.
    """

    def __init__(self, store: TrophyStore, ledger: Ledger) -> None:
        self.store = store
        self.ledger = ledger

    async def ensure_day(self, player_id: int, day: date) -> None:
        await self.store.upsert_daily_stats_increment(player_id, day, ZERO_INCREMENT)

    async def merge_event(self, player_id: int, day: date, event: LedgerEvent) -> None:
        if event.player_id != player_id:
            raise ValueError(f"event for player {event.player_id} merged into player {player_id}")
        await self.store.upsert_daily_stats_increment(player_id, day, DailyIncrement.for_event(event))

    async def get_day(self, player_id: int, day: date) -> DailyAggregate:
        row = await self.store.get_daily_stats(player_id, day)
        if row is not None:
            return row

        # no row yet: derive from the ledger for that game day
        start, end = game_day_bounds(day, reset_hour=self.ledger.reset_hour)
        events = await self.ledger.events_in_range(player_id, start, end)
        return aggregate_events(player_id, day, events)

    async def get_range(self, player_id: int, from_day: date, to_day: date) -> list[DailyAggregate]:
        """Every day in [from_day, to_day], newest first."""
        if to_day < from_day:
            return []

        rows = await self.store.list_daily_stats(player_id, since=from_day, until=to_day)
        by_day = {r.day: r for r in rows}

        out: list[DailyAggregate] = []
        day = to_day
        while day >= from_day:
            out.append(by_day.get(day) or DailyAggregate.zero(player_id, day))
            day -= timedelta(days=1)
        return out
