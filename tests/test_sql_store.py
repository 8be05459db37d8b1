"""SqlTrophyStore against a real SQLite file."""

import asyncio
from datetime import date, timedelta

import pytest

from fakes import utc
from trophybot.database.store import DailyIncrement, EventFilter, PlayerRecord, ZERO_INCREMENT
from trophybot.services.errors import StorageError
from trophybot.services.trophies import classify_change

DAY = date(2026, 10, 19)


async def _player(store, tag="AAA", trophies=5000, **kwargs):
    return await store.upsert_player(PlayerRecord(tag, f"Player {tag}", "Clan", trophies, **kwargs))


class TestPlayers:
    def test_insert_then_update(self, run_sql):
        async def _go(store):
            first = await _player(store)
            second = await store.upsert_player(
                first.with_snapshot(name="Renamed", clan_name=None, trophies=5100, at=utc(2026, 10, 19, 12))
            )
            return first, second, await store.get_player("AAA")

        first, second, loaded = run_sql(_go)

        assert first.id is not None
        assert second.id == first.id
        assert loaded.name == "Renamed"
        assert loaded.clan_name is None
        assert loaded.current_trophies == 5100
        assert loaded.last_updated == utc(2026, 10, 19, 12)

    def test_missing_player(self, run_sql):
        async def _go(store):
            return await store.get_player("NOPE")

        assert run_sql(_go) is None

    def test_tracked_filter_keeps_insert_order(self, run_sql):
        async def _go(store):
            await _player(store, "B")
            await _player(store, "A")
            await _player(store, "C", is_tracking=False)
            return await store.list_tracked_players(), await store.get_player("C")

        tracked, paused = run_sql(_go)

        assert [p.tag for p in tracked] == ["B", "A"]
        assert paused is not None and not paused.is_tracking


class TestEvents:
    def test_filters_and_order(self, run_sql):
        async def _go(store):
            p = await _player(store)
            for hour, (prev, new) in zip((6, 7, 8, 9), [(5000, 5030), (5030, 5010), (5010, 5050), (5050, 5020)]):
                await store.append_trophy_event(classify_change(p.id, prev, new, utc(2026, 10, 19, hour)))

            return (
                await store.list_trophy_events(p.id),
                await store.list_trophy_events(p.id, EventFilter(limit=2)),
                await store.list_trophy_events(
                    p.id, EventFilter(start=utc(2026, 10, 19, 7), end=utc(2026, 10, 19, 9), newest_first=False)
                ),
                await store.list_trophy_events(
                    p.id,
                    EventFilter(start=utc(2026, 10, 19, 7), end=utc(2026, 10, 19, 9), end_inclusive=True, newest_first=False),
                ),
            )

        everything, latest, half_open, closed = run_sql(_go)

        assert [e.trophy_change for e in everything] == [-30, 40, -20, 30]
        assert [e.trophy_change for e in latest] == [-30, 40]
        assert [e.trophy_change for e in half_open] == [-20, 40]
        assert [e.trophy_change for e in closed] == [-20, 40, -30]
        assert everything[0].recorded_at == utc(2026, 10, 19, 9)
        assert everything[0].recorded_at.tzinfo is not None

    def test_zero_change_rejected_by_schema(self, run_sql):
        from trophybot.database.store import LedgerEvent

        async def _go(store):
            p = await _player(store)
            await store.append_trophy_event(LedgerEvent(p.id, 5000, 5000, 0, False, utc(2026, 10, 19, 6)))

        with pytest.raises(StorageError):
            run_sql(_go)


class TestDailyStats:
    def test_increments_add_up(self, run_sql):
        async def _go(store):
            p = await _player(store)
            await store.upsert_daily_stats_increment(p.id, DAY, DailyIncrement(gain_count=1, gain_total=30, net_change=30))
            await store.upsert_daily_stats_increment(p.id, DAY, DailyIncrement(loss_count=1, loss_total=40, net_change=-40))
            await store.upsert_daily_stats_increment(p.id, DAY, ZERO_INCREMENT)
            return await store.get_daily_stats(p.id, DAY)

        row = run_sql(_go)

        assert (row.gain_count, row.gain_total, row.loss_count, row.loss_total, row.net_change) == (1, 30, 1, 40, -10)

    def test_concurrent_increments_lose_nothing(self, run_sql):
        async def _go(store):
            p = await _player(store)
            await asyncio.gather(*(
                store.upsert_daily_stats_increment(p.id, DAY, DailyIncrement(gain_count=1, gain_total=10, net_change=10))
                for _ in range(8)
            ))
            await asyncio.gather(*(store.upsert_daily_stats_increment(p.id, DAY, ZERO_INCREMENT) for _ in range(4)))
            return await store.list_daily_stats_for_day(DAY)

        rows = run_sql(_go)

        assert len(rows) == 1
        assert (rows[0].gain_count, rows[0].gain_total) == (8, 80)

    def test_day_range_queries(self, run_sql):
        async def _go(store):
            p = await _player(store)
            for back in range(5):
                await store.upsert_daily_stats_increment(p.id, DAY - timedelta(days=back), ZERO_INCREMENT)
            return (
                await store.list_daily_stats(p.id, since=DAY - timedelta(days=1)),
                await store.list_daily_stats(p.id, before=DAY - timedelta(days=3)),
                await store.list_daily_stats(p.id, since=DAY - timedelta(days=3), until=DAY - timedelta(days=2)),
            )

        recent, old, middle = run_sql(_go)

        assert [r.day for r in recent] == [DAY, DAY - timedelta(days=1)]
        assert [r.day for r in old] == [DAY - timedelta(days=4)]
        assert [r.day for r in middle] == [DAY - timedelta(days=2), DAY - timedelta(days=3)]


class TestRetentionDeletes:
    def test_strictly_older_only(self, run_sql):
        cutoff = utc(2026, 8, 20, 12)

        async def _go(store):
            p = await _player(store)
            for at in (cutoff - timedelta(seconds=1), cutoff):
                await store.append_trophy_event(classify_change(p.id, 5000, 5010, at))
            for day in (date(2026, 8, 19), date(2026, 8, 20)):
                await store.upsert_daily_stats_increment(p.id, day, ZERO_INCREMENT)

            deleted = (
                await store.delete_trophy_events_before(cutoff),
                await store.delete_daily_stats_before(date(2026, 8, 20)),
            )
            return deleted, await store.list_trophy_events(p.id), await store.list_daily_stats(p.id)

        deleted, events, days = run_sql(_go)

        assert deleted == (1, 1)
        assert [e.recorded_at for e in events] == [cutoff]
        assert [d.day for d in days] == [date(2026, 8, 20)]


class TestTransaction:
    def test_rollback_discards_all_writes(self, run_sql):
        async def _go(store):
            p = await _player(store)
            with pytest.raises(RuntimeError):
                async with store.transaction() as tx:
                    await tx.append_trophy_event(classify_change(p.id, 5000, 5040, utc(2026, 10, 19, 6)))
                    await tx.upsert_daily_stats_increment(p.id, DAY, DailyIncrement(gain_count=1, gain_total=40, net_change=40))
                    await tx.upsert_player(p.with_snapshot(name=p.name, clan_name=p.clan_name, trophies=5040, at=utc(2026, 10, 19, 6)))
                    raise RuntimeError("boom")

            return await store.list_trophy_events(p.id), await store.get_daily_stats(p.id, DAY), await store.get_player(p.tag)

        events, row, player = run_sql(_go)

        assert events == []
        assert row is None
        assert player.current_trophies == 5000

    def test_commit_keeps_all_writes(self, run_sql):
        async def _go(store):
            p = await _player(store)
            async with store.transaction() as tx:
                await tx.append_trophy_event(classify_change(p.id, 5000, 5040, utc(2026, 10, 19, 6)))
                await tx.upsert_daily_stats_increment(p.id, DAY, DailyIncrement(gain_count=1, gain_total=40, net_change=40))
            return await store.list_trophy_events(p.id), await store.get_daily_stats(p.id, DAY)

        events, row = run_sql(_go)

        assert len(events) == 1
        assert row.gain_total == 40
