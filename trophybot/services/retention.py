# trophybot/services/retention.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

from trophybot.database.store import TrophyStore
from trophybot.utils.windows import DAILY_RESET_HOUR, game_day_id

log = logging.getLogger(__name__)

RETENTION_DAYS = 60


@dataclass(frozen=True, slots=True)
class SweepResult:
    event_cutoff: datetime
    day_cutoff: date
    events_deleted: Optional[int]  # None = delete failed
    days_deleted: Optional[int]


class RetentionSweeper:
    """
    Drops ledger events and daily rows strictly older than the horizon.
    Rows exactly at the cutoff stay. Never raises.
    """

    def __init__(
        self,
        store: TrophyStore,
        *,
        retention_days: int = RETENTION_DAYS,
        reset_hour: int = DAILY_RESET_HOUR,
    ) -> None:
        self.store = store
        self.retention_days = retention_days
        self.reset_hour = reset_hour

    def cutoffs(self, now: datetime) -> tuple[datetime, date]:
        horizon = timedelta(days=self.retention_days)
        return now - horizon, game_day_id(now, reset_hour=self.reset_hour) - horizon

    async def sweep(self, now: datetime) -> SweepResult:
        event_cutoff, day_cutoff = self.cutoffs(now)

        days_deleted: Optional[int] = None
        try:
            days_deleted = await self.store.delete_daily_stats_before(day_cutoff)
        except Exception:
            log.exception("Failed to delete daily stats before %s", day_cutoff.isoformat())

        events_deleted: Optional[int] = None
        try:
            events_deleted = await self.store.delete_trophy_events_before(event_cutoff)
        except Exception:
            log.exception("Failed to delete trophy events before %s", event_cutoff.isoformat())

        if days_deleted or events_deleted:
            log.info(
                "Retention sweep: %s daily rows, %s events deleted (cutoff %s)",
                days_deleted,
                events_deleted,
                day_cutoff.isoformat(),
            )

        return SweepResult(
            event_cutoff=event_cutoff,
            day_cutoff=day_cutoff,
            events_deleted=events_deleted,
            days_deleted=days_deleted,
        )
