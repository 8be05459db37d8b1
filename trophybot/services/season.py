# trophybot/services/season.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Mapping, Optional, Sequence

from trophybot.database.store import DailyAggregate, LedgerEvent, PlayerRecord, TrophyStore
from trophybot.services.daily_stats import DailyStatsStore
from trophybot.services.errors import NotFound
from trophybot.services.ledger import Ledger
from trophybot.utils.windows import (
    Season,
    current_season,
    game_day_id,
    previous_season_end,
)

# "yesterday" has no row
NO_DATA = None


@dataclass(frozen=True, slots=True)
class LeaderboardRow:
    rank: int
    tag: str
    name: str
    clan_name: str | None
    trophies: int
    gain_count: int
    loss_count: int
    net_change: int

    def as_dict(self) -> dict:
        return {
            "rank": self.rank,
            "entityTag": self.tag,
            "name": self.name,
            "group": self.clan_name,
            "currentValue": self.trophies,
            "gainCount": self.gain_count,
            "lossCount": self.loss_count,
            "netChange": self.net_change,
        }


def leaderboard(
    players: Sequence[PlayerRecord],
    today: Mapping[int, DailyAggregate],
) -> list[LeaderboardRow]:
    """
    Highest trophies first. Equal trophies keep input order, ranks are
    1..n without gaps or shared places.
    """
    ordered = sorted(players, key=lambda p: -int(p.current_trophies))  # sorted() is stable

    rows: list[LeaderboardRow] = []
    for rank, p in enumerate(ordered, start=1):
        agg = today.get(p.id) if p.id is not None else None
        rows.append(
            LeaderboardRow(
                rank=rank,
                tag=p.tag,
                name=p.name,
                clan_name=p.clan_name,
                trophies=int(p.current_trophies),
                gain_count=agg.gain_count if agg else 0,
                loss_count=agg.loss_count if agg else 0,
                net_change=agg.net_change if agg else 0,
            )
        )
    return rows


@dataclass(frozen=True, slots=True)
class NumberedChange:
    number: int  # 1-based, per kind, in time order
    change: int
    recorded_at: datetime


@dataclass(frozen=True, slots=True)
class TodaySummary:
    gain_total: int
    gain_avg: float
    loss_total: int
    loss_avg: float
    net_change: int
    best_gain: int
    worst_loss: int  # most negative change, 0 when none


def summarize_today(events: Sequence[LedgerEvent]) -> TodaySummary:
    gains = [e.trophy_change for e in events if e.is_gain]
    losses = [e.trophy_change for e in events if not e.is_gain]

    gain_total = sum(gains)
    loss_total = abs(sum(losses))

    return TodaySummary(
        gain_total=gain_total,
        gain_avg=round(gain_total / len(gains), 1) if gains else 0.0,
        loss_total=loss_total,
        loss_avg=round(loss_total / len(losses), 1) if losses else 0.0,
        net_change=sum(gains) + sum(losses),
        best_gain=max(gains) if gains else 0,
        worst_loss=min(losses) if losses else 0,
    )


@dataclass(frozen=True, slots=True)
class PlayerReport:
    player: PlayerRecord
    season: Season
    game_day: date
    today: DailyAggregate
    summary: TodaySummary
    gains: list[NumberedChange]
    losses: list[NumberedChange]
    history: list[LedgerEvent]
    season_days: list[DailyAggregate]
    previous_season_days: list[DailyAggregate]
    yesterday: Optional[DailyAggregate]
    season_highest: int
    previous_season_end: datetime


class SeasonView:
    def __init__(
        self,
        store: TrophyStore,
        daily: DailyStatsStore,
        ledger: Ledger,
        *,
        season_override: datetime | None = None,
        history_limit: int = 50,
    ) -> None:
        self.store = store
        self.daily = daily
        self.ledger = ledger
        self.season_override = season_override
        self.history_limit = history_limit

    @property
    def reset_hour(self) -> int:
        return self.ledger.reset_hour

    async def season_stats(self, player_id: int, season_start: datetime) -> list[DailyAggregate]:
        first_day = game_day_id(season_start, reset_hour=self.reset_hour)
        return await self.store.list_daily_stats(player_id, since=first_day)

    async def previous_season_stats(self, player_id: int, season_start: datetime) -> list[DailyAggregate]:
        first_day = game_day_id(season_start, reset_hour=self.reset_hour)
        return await self.store.list_daily_stats(player_id, before=first_day)

    async def yesterday(self, player_id: int, now: datetime) -> Optional[DailyAggregate]:
        day = game_day_id(now, reset_hour=self.reset_hour) - timedelta(days=1)
        row = await self.store.get_daily_stats(player_id, day)
        return row if row is not None else NO_DATA

    async def build_leaderboard(self, now: datetime) -> list[LeaderboardRow]:
        players = await self.store.list_tracked_players()
        day = game_day_id(now, reset_hour=self.reset_hour)
        today = {agg.player_id: agg for agg in await self.store.list_daily_stats_for_day(day)}
        return leaderboard(players, today)

    async def player_report(self, tag: str, now: datetime) -> PlayerReport:
        player = await self.store.get_player(tag)
        if player is None or player.id is None:
            raise NotFound(f"#{tag} is not tracked")

        season = current_season(now, override=self.season_override, reset_hour=self.reset_hour)
        day = game_day_id(now, reset_hour=self.reset_hour)

        today_events = await self.ledger.today_events(player.id, now)
        gains = [e for e in today_events if e.is_gain]
        losses = [e for e in today_events if not e.is_gain]

        history = await self.ledger.recent_events(player.id, limit=self.history_limit)
        season_highest = max([player.current_trophies, *(e.new_trophies for e in history)])

        return PlayerReport(
            player=player,
            season=season,
            game_day=day,
            today=await self.daily.get_day(player.id, day),
            summary=summarize_today(today_events),
            gains=[NumberedChange(i, e.trophy_change, e.recorded_at) for i, e in enumerate(gains, start=1)],
            losses=[NumberedChange(i, e.trophy_change, e.recorded_at) for i, e in enumerate(losses, start=1)],
            history=history,
            season_days=await self.season_stats(player.id, season.start),
            previous_season_days=await self.previous_season_stats(player.id, season.start),
            yesterday=await self.yesterday(player.id, now),
            season_highest=season_highest,
            previous_season_end=previous_season_end(now, reset_hour=self.reset_hour),
        )
