"""Tests for trophybot.services.trophies."""

from datetime import timedelta

from fakes import utc
from trophybot.services.trophies import classify_change, classify_series

T0 = utc(2026, 10, 19, 6)


class TestClassifyChange:
    def test_gain(self):
        ev = classify_change(1, 5000, 5032, T0)
        assert ev is not None
        assert ev.is_gain
        assert ev.trophy_change == 32
        assert ev.previous_trophies == 5000
        assert ev.new_trophies == 5032
        assert ev.recorded_at == T0

    def test_loss(self):
        ev = classify_change(1, 5032, 5000, T0)
        assert ev is not None
        assert not ev.is_gain
        assert ev.trophy_change == -32

    def test_no_change_emits_nothing(self):
        assert classify_change(1, 5000, 5000, T0) is None


class TestClassifySeries:
    def test_deltas_sum_to_total_movement(self):
        values = [5000, 5040, 5040, 5010, 4980, 4980, 5020, 5060]
        series = [(T0 + timedelta(minutes=5 * i), v) for i, v in enumerate(values)]

        events = classify_series(7, series)

        assert sum(e.trophy_change for e in events) == values[-1] - values[0]
        assert all(e.trophy_change != 0 for e in events)
        assert all(e.new_trophies == e.previous_trophies + e.trophy_change for e in events)
        assert all(e.player_id == 7 for e in events)
        # two flat steps dropped
        assert len(events) == len(values) - 1 - 2

    def test_flat_series(self):
        series = [(T0 + timedelta(minutes=i), 5000) for i in range(4)]
        assert classify_series(1, series) == []

    def test_single_value(self):
        assert classify_series(1, [(T0, 5000)]) == []
