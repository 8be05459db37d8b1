# trophybot/services/container.py
from __future__ import annotations

from dataclasses import dataclass

from trophybot.config.settings import Settings
from trophybot.database.store import TrophyStore
from trophybot.services.clash_api import SnapshotSource
from trophybot.services.daily_stats import DailyStatsStore
from trophybot.services.ledger import Ledger
from trophybot.services.poller import BatchPoller
from trophybot.services.retention import RetentionSweeper
from trophybot.services.season import SeasonView
from trophybot.services.tracking import TrackingService


@dataclass(frozen=True, slots=True)
class Services:
    """Everything handlers and jobs need, injected as `services`."""
    store: TrophyStore
    source: SnapshotSource
    ledger: Ledger
    daily: DailyStatsStore
    season: SeasonView
    poller: BatchPoller
    sweeper: RetentionSweeper
    tracking: TrackingService

    @classmethod
    def build(cls, settings: Settings, store: TrophyStore, source: SnapshotSource) -> "Services":
        ledger = Ledger(store)
        daily = DailyStatsStore(store, ledger)
        sweeper = RetentionSweeper(store, retention_days=settings.retention_days)
        return cls(
            store=store,
            source=source,
            ledger=ledger,
            daily=daily,
            season=SeasonView(store, daily, ledger, season_override=settings.season_reset_override),
            poller=BatchPoller(
                store,
                source,
                batch_size=settings.batch_size,
                batch_delay=settings.batch_delay_seconds,
                fetch_timeout=settings.fetch_timeout_seconds,
                sweeper=sweeper,
            ),
            sweeper=sweeper,
            tracking=TrackingService(store, source),
        )
