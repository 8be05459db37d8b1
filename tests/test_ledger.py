"""Tests for trophybot.services.ledger."""

import asyncio

from fakes import utc
from trophybot.services.ledger import Ledger
from trophybot.services.trophies import classify_change


def _seed(store, ledger, points):
    """points: list of (recorded_at, previous, new) for player 1."""
    async def _go():
        for at, prev, new in points:
            await ledger.record(classify_change(1, prev, new, at))
    asyncio.run(_go())


class TestTodayWindow:
    def test_after_reset(self, store):
        ledger = Ledger(store)
        now = utc(2026, 10, 19, 12)
        assert ledger.today_window(now) == (utc(2026, 10, 19, 5), now)

    def test_before_reset_reaches_back_to_yesterday(self, store):
        ledger = Ledger(store)
        now = utc(2026, 10, 19, 3)
        assert ledger.today_window(now) == (utc(2026, 10, 18, 5), now)

    def test_at_reset(self, store):
        ledger = Ledger(store)
        now = utc(2026, 10, 19, 5)
        assert ledger.today_window(now) == (now, now)


class TestQueries:
    def test_today_events_respects_reset(self, store):
        ledger = Ledger(store)
        _seed(store, ledger, [
            (utc(2026, 10, 19, 4, 50), 5000, 5030),  # previous game day
            (utc(2026, 10, 19, 5, 0), 5030, 5000),   # first instant of today
            (utc(2026, 10, 19, 9, 0), 5000, 5040),
            (utc(2026, 10, 19, 12, 0), 5040, 5070),  # exactly now
        ])

        events = asyncio.run(ledger.today_events(1, utc(2026, 10, 19, 12)))

        assert [e.trophy_change for e in events] == [-30, 40, 30]

    def test_recent_events_newest_first(self, store):
        ledger = Ledger(store)
        _seed(store, ledger, [
            (utc(2026, 10, 19, 6), 5000, 5010),
            (utc(2026, 10, 19, 7), 5010, 5020),
            (utc(2026, 10, 19, 8), 5020, 5030),
        ])

        events = asyncio.run(ledger.recent_events(1, limit=2))

        assert [e.new_trophies for e in events] == [5030, 5020]

    def test_events_in_range_is_half_open(self, store):
        ledger = Ledger(store)
        _seed(store, ledger, [
            (utc(2026, 10, 19, 6), 5000, 5010),
            (utc(2026, 10, 19, 7), 5010, 5020),
            (utc(2026, 10, 19, 8), 5020, 5030),
        ])

        events = asyncio.run(ledger.events_in_range(1, utc(2026, 10, 19, 6), utc(2026, 10, 19, 8)))

        assert [e.new_trophies for e in events] == [5010, 5020]

    def test_other_players_excluded(self, store):
        ledger = Ledger(store)
        asyncio.run(ledger.record(classify_change(2, 5000, 5010, utc(2026, 10, 19, 6))))
        assert asyncio.run(ledger.recent_events(1)) == []
