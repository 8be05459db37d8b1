# trophybot/scheduler/jobs.py
from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from trophybot.config.settings import Settings
from trophybot.services.poller import BatchPoller, CycleReport

log = logging.getLogger(__name__)


async def refresh_all_players(poller: BatchPoller) -> CycleReport | None:
    """
    Scheduled refresh cycle. Per-player failures are already folded into the
    report; anything else is logged so the scheduler keeps running.
    """
    try:
        report = await poller.run_cycle()
    except Exception:
        log.exception("Refresh cycle failed")
        return None

    for outcome in report.outcomes:
        if outcome.status.value != "updated":
            log.info("#%s %s: %s", outcome.tag, outcome.status.value, outcome.detail)
    return report


def build_scheduler(poller: BatchPoller, settings: Settings) -> AsyncIOScheduler:
    """
    Creates an AsyncIOScheduler with the refresh job registered.

    max_instances=1 + coalesce: a cycle that overruns the interval delays
    the next one, cycles never overlap.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        refresh_all_players,
        trigger=IntervalTrigger(seconds=settings.poll_interval_seconds, timezone="UTC"),
        kwargs={"poller": poller},
        id="refresh_all_players",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=settings.poll_interval_seconds,
        next_run_time=datetime.now(timezone.utc),  # first cycle right after startup
    )

    return scheduler
