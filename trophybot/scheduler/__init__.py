# trophybot/scheduler/__init__.py
from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from trophybot.config.settings import Settings
from trophybot.scheduler.jobs import build_scheduler
from trophybot.services.poller import BatchPoller


def setup_scheduler(poller: BatchPoller, settings: Settings) -> AsyncIOScheduler:
    scheduler = build_scheduler(poller=poller, settings=settings)
    scheduler.start()
    return scheduler
