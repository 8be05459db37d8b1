# trophybot/database/store.py
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import AsyncContextManager, Optional, Protocol


@dataclass(frozen=True, slots=True)
class PlayerRecord:
    tag: str
    name: str
    clan_name: Optional[str]
    current_trophies: int
    is_tracking: bool = True
    last_updated: Optional[datetime] = None
    id: Optional[int] = None

    def with_snapshot(self, *, name: str, clan_name: Optional[str], trophies: int, at: datetime) -> "PlayerRecord":
        return replace(self, name=name, clan_name=clan_name, current_trophies=trophies, last_updated=at)


@dataclass(frozen=True, slots=True)
class LedgerEvent:
    """
    One observed trophy change. new_trophies == previous_trophies + trophy_change,
    trophy_change is never 0.
    """
    player_id: int
    previous_trophies: int
    new_trophies: int
    trophy_change: int
    is_gain: bool
    recorded_at: datetime
    id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class DailyIncrement:
    gain_count: int = 0
    gain_total: int = 0
    loss_count: int = 0
    loss_total: int = 0
    net_change: int = 0

    @classmethod
    def for_event(cls, event: LedgerEvent) -> "DailyIncrement":
        change = int(event.trophy_change)
        if event.is_gain:
            return cls(gain_count=1, gain_total=change, net_change=change)
        return cls(loss_count=1, loss_total=abs(change), net_change=change)


ZERO_INCREMENT = DailyIncrement()


@dataclass(frozen=True, slots=True)
class DailyAggregate:
    player_id: int
    day: date
    gain_count: int = 0
    gain_total: int = 0
    loss_count: int = 0
    loss_total: int = 0
    net_change: int = 0

    @classmethod
    def zero(cls, player_id: int, day: date) -> "DailyAggregate":
        return cls(player_id=player_id, day=day)

    def merged(self, inc: DailyIncrement) -> "DailyAggregate":
        return replace(
            self,
            gain_count=self.gain_count + inc.gain_count,
            gain_total=self.gain_total + inc.gain_total,
            loss_count=self.loss_count + inc.loss_count,
            loss_total=self.loss_total + inc.loss_total,
            net_change=self.net_change + inc.net_change,
        )


@dataclass(frozen=True, slots=True)
class EventFilter:
    """
    start is inclusive; end is exclusive unless end_inclusive.
    """
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    end_inclusive: bool = False
    limit: Optional[int] = None
    newest_first: bool = True

    def matches(self, recorded_at: datetime) -> bool:
        if self.start is not None and recorded_at < self.start:
            return False
        if self.end is not None:
            if self.end_inclusive and recorded_at > self.end:
                return False
            if not self.end_inclusive and recorded_at >= self.end:
                return False
        return True


class TrophyStore(Protocol):
    """
    Operations the tracker needs from persistent storage.
    Every method raises StorageError when the backend fails.
    """

    def transaction(self) -> AsyncContextManager["TrophyStore"]: ...

    # players
    async def get_player(self, tag: str) -> Optional[PlayerRecord]: ...
    async def upsert_player(self, record: PlayerRecord) -> PlayerRecord: ...
    async def list_tracked_players(self) -> list[PlayerRecord]: ...

    # ledger
    async def append_trophy_event(self, event: LedgerEvent) -> LedgerEvent: ...
    async def list_trophy_events(self, player_id: int, flt: Optional[EventFilter] = None) -> list[LedgerEvent]: ...

    # daily aggregates
    async def get_daily_stats(self, player_id: int, day: date) -> Optional[DailyAggregate]: ...
    async def list_daily_stats(
        self,
        player_id: int,
        *,
        since: Optional[date] = None,
        until: Optional[date] = None,
        before: Optional[date] = None,
    ) -> list[DailyAggregate]: ...
    async def list_daily_stats_for_day(self, day: date) -> list[DailyAggregate]: ...
    async def upsert_daily_stats_increment(self, player_id: int, day: date, increment: DailyIncrement) -> None: ...

    # retention
    async def delete_trophy_events_before(self, instant: datetime) -> int: ...
    async def delete_daily_stats_before(self, day: date) -> int: ...
