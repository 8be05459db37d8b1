# trophybot/services/poller.py
from __future__ import annotations

import asyncio
import enum
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

from trophybot.database.store import PlayerRecord, TrophyStore
from trophybot.services.clash_api import PlayerSnapshot, SnapshotSource
from trophybot.services.daily_stats import DailyStatsStore
from trophybot.services.errors import Forbidden, NotFound, StorageError, TransientError
from trophybot.services.ledger import Ledger
from trophybot.services.retention import RetentionSweeper, SweepResult
from trophybot.services.trophies import classify_change
from trophybot.utils.windows import DAILY_RESET_HOUR, game_day_id

log = logging.getLogger(__name__)

BATCH_SIZE = 5
BATCH_DELAY_SECONDS = 1.0
FETCH_TIMEOUT_SECONDS = 10.0

T = TypeVar("T")
R = TypeVar("R")

Pause = Callable[[float], Awaitable[None]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PollStatus(str, enum.Enum):
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class PollOutcome:
    tag: str
    status: PollStatus
    detail: Optional[str] = None
    trophy_change: int = 0

    def as_dict(self) -> dict:
        return {"entityTag": self.tag, "status": self.status.value, "detail": self.detail}


@dataclass(slots=True)
class CycleReport:
    started_at: datetime
    outcomes: list[PollOutcome] = field(default_factory=list)
    batches: int = 0
    sweep: Optional[SweepResult] = None

    @property
    def counts(self) -> dict[str, int]:
        c = Counter(o.status.value for o in self.outcomes)
        return {s.value: c.get(s.value, 0) for s in PollStatus}

    def as_dicts(self) -> list[dict]:
        return [o.as_dict() for o in self.outcomes]


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    batch_size: int,
    delay: float,
    pause: Pause,
) -> tuple[list[R], int]:
    """
    Batches run one after another, items inside a batch run together.
    `pause(delay)` is awaited between batches (not after the last one).
    Returns results in input order and the number of batches run.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    results: list[R] = []
    batches = 0
    for i in range(0, len(items), batch_size):
        if i:
            await pause(delay)
        batch = items[i:i + batch_size]
        results.extend(await asyncio.gather(*(worker(item) for item in batch)))
        batches += 1
    return results, batches


class BatchPoller:
    """
    One refresh cycle: fetch every tracked player, record trophy changes,
    fold them into today's daily row, update the player.

    A single player's failure becomes its outcome; it never stops the cycle.
    """

    def __init__(
        self,
        store: TrophyStore,
        source: SnapshotSource,
        *,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = BATCH_DELAY_SECONDS,
        fetch_timeout: float = FETCH_TIMEOUT_SECONDS,
        pause: Pause = asyncio.sleep,
        clock: Callable[[], datetime] = utc_now,
        sweeper: Optional[RetentionSweeper] = None,
        reset_hour: int = DAILY_RESET_HOUR,
    ) -> None:
        self.store = store
        self.source = source
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.fetch_timeout = fetch_timeout
        self.pause = pause
        self.clock = clock
        self.sweeper = sweeper
        self.reset_hour = reset_hour
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run_cycle(self, now: datetime | None = None) -> CycleReport:
        # a second trigger waits for the running cycle instead of overlapping it
        async with self._lock:
            return await self._run_cycle(now or self.clock())

    async def _run_cycle(self, now: datetime) -> CycleReport:
        report = CycleReport(started_at=now)

        try:
            players = await self.store.list_tracked_players()
        except StorageError:
            log.exception("Failed to load tracked players")
            players = []

        if players:
            log.info("Refreshing %d players (game day %s)", len(players), game_day_id(now, reset_hour=self.reset_hour))

            async def _worker(p: PlayerRecord) -> PollOutcome:
                return await self.refresh_player(p, now)

            report.outcomes, report.batches = await run_in_batches(
                players,
                _worker,
                batch_size=self.batch_size,
                delay=self.batch_delay,
                pause=self.pause,
            )

        if self.sweeper is not None:
            report.sweep = await self.sweeper.sweep(now)

        log.info("Cycle done: %s", report.counts)
        return report

    async def _fetch(self, tag: str) -> PlayerSnapshot:
        return await asyncio.wait_for(self.source.fetch(tag), timeout=self.fetch_timeout)

    async def refresh_player(self, player: PlayerRecord, now: datetime) -> PollOutcome:
        try:
            snap = await self._fetch(player.tag)
        except asyncio.TimeoutError:
            log.warning("Timed out fetching #%s", player.tag)
            return PollOutcome(player.tag, PollStatus.ERROR, f"timeout after {self.fetch_timeout:g}s")
        except NotFound as e:
            log.warning("Player #%s not found: %s", player.tag, e)
            return PollOutcome(player.tag, PollStatus.ERROR, f"not found: {e}")
        except Forbidden as e:
            log.error("Access denied fetching #%s: %s", player.tag, e)
            return PollOutcome(player.tag, PollStatus.ERROR, f"forbidden: {e}")
        except TransientError as e:
            log.warning("Fetch failed for #%s: %s", player.tag, e)
            return PollOutcome(player.tag, PollStatus.ERROR, str(e))
        except Exception as e:
            log.exception("Unexpected fetch failure for #%s", player.tag)
            return PollOutcome(player.tag, PollStatus.ERROR, f"unexpected: {e!r}")

        if not snap.eligible:
            log.info("Player #%s is no longer in Legend League (%s)", player.tag, snap.league_name)
            return PollOutcome(player.tag, PollStatus.SKIPPED, "Not in Legend League")

        try:
            change = await self.apply_snapshot(player, snap, now)
        except StorageError as e:
            log.exception("Failed to store refresh for #%s", player.tag)
            return PollOutcome(player.tag, PollStatus.ERROR, f"storage: {e}")
        except Exception as e:
            log.exception("Unexpected failure storing #%s", player.tag)
            return PollOutcome(player.tag, PollStatus.ERROR, f"unexpected: {e!r}")

        return PollOutcome(player.tag, PollStatus.UPDATED, None, change)

    async def apply_snapshot(self, player: PlayerRecord, snap: PlayerSnapshot, now: datetime) -> int:
        """
        Ledger append -> daily merge -> player update, in one transaction.
        Either all three land or none do, so a crash can only under-count.
        """
        if player.id is None:
            raise ValueError(f"player #{player.tag} has no id")

        day = game_day_id(now, reset_hour=self.reset_hour)
        event = classify_change(player.id, player.current_trophies, snap.trophies, now)

        async with self.store.transaction() as tx:
            ledger = Ledger(tx, reset_hour=self.reset_hour)
            daily = DailyStatsStore(tx, ledger)

            if event is not None:
                await ledger.record(event)
                await daily.merge_event(player.id, day, event)
            else:
                await daily.ensure_day(player.id, day)

            await tx.upsert_player(
                player.with_snapshot(
                    name=snap.name,
                    clan_name=snap.clan_name,
                    trophies=snap.trophies,
                    at=now,
                )
            )

        return event.trophy_change if event else 0
