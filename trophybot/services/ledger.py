# trophybot/services/ledger.py
from __future__ import annotations

import logging
from datetime import datetime

from trophybot.database.store import EventFilter, LedgerEvent, TrophyStore
from trophybot.utils.windows import DAILY_RESET_HOUR, game_day_bounds, game_day_id

log = logging.getLogger(__name__)


class Ledger:
    """
    Append-only trophy change history.
    """

    def __init__(self, store: TrophyStore, *, reset_hour: int = DAILY_RESET_HOUR) -> None:
        self.store = store
        self.reset_hour = reset_hour

    async def record(self, event: LedgerEvent) -> LedgerEvent:
        # StorageError propagates to the caller
        saved = await self.store.append_trophy_event(event)
        log.debug(
            "Recorded player_id=%s %+d (%s -> %s)",
            event.player_id,
            event.trophy_change,
            event.previous_trophies,
            event.new_trophies,
        )
        return saved

    async def recent_events(self, player_id: int, limit: int = 50) -> list[LedgerEvent]:
        return await self.store.list_trophy_events(
            player_id,
            EventFilter(limit=limit, newest_first=True),
        )

    async def events_in_range(self, player_id: int, start: datetime, end: datetime) -> list[LedgerEvent]:
        """[start, end), oldest first."""
        return await self.store.list_trophy_events(
            player_id,
            EventFilter(start=start, end=end, newest_first=False),
        )

    def today_window(self, now: datetime) -> tuple[datetime, datetime]:
        """
        Active game day up to `now`, both ends inclusive.

        After the reset: [today 05:00, now]
        Before the reset: [yesterday 05:00, now]
        """
        start, _ = game_day_bounds(game_day_id(now, reset_hour=self.reset_hour), reset_hour=self.reset_hour)
        return start, now

    async def today_events(self, player_id: int, now: datetime) -> list[LedgerEvent]:
        start, end = self.today_window(now)
        return await self.store.list_trophy_events(
            player_id,
            EventFilter(start=start, end=end, end_inclusive=True, newest_first=False),
        )
