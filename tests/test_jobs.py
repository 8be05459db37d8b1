"""Tests for trophybot.scheduler.jobs."""

import asyncio
from datetime import timedelta

from fakes import ScriptedSource, snapshot
from trophybot.config.settings import Settings
from trophybot.database.store import PlayerRecord
from trophybot.scheduler.jobs import build_scheduler, refresh_all_players
from trophybot.services.poller import BatchPoller


class ExplodingPoller:
    async def run_cycle(self, now=None):
        raise RuntimeError("boom")


async def _no_pause(_delay):
    return None


class TestRefreshAllPlayers:
    def test_returns_report(self, store):
        asyncio.run(store.upsert_player(PlayerRecord("A", "a", None, 5000)))
        poller = BatchPoller(store, ScriptedSource({"A": [snapshot("A", 5010)]}), pause=_no_pause)

        report = asyncio.run(refresh_all_players(poller))

        assert report.counts["updated"] == 1

    def test_failure_is_logged_not_raised(self):
        assert asyncio.run(refresh_all_players(ExplodingPoller())) is None


class TestBuildScheduler:
    def test_job_never_overlaps(self, store):
        settings = Settings(bot_token="t", clash_api_key="k", poll_interval_seconds=120)
        poller = BatchPoller(store, ScriptedSource())

        scheduler = build_scheduler(poller, settings)
        job = scheduler.get_job("refresh_all_players")

        assert job is not None
        assert job.max_instances == 1
        assert job.coalesce
        assert job.trigger.interval == timedelta(seconds=120)
        assert job.kwargs == {"poller": poller}
