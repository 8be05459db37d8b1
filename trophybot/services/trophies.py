# trophybot/services/trophies.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from trophybot.database.store import LedgerEvent


def classify_change(
    player_id: int,
    previous: int,
    new: int,
    recorded_at: datetime,
) -> Optional[LedgerEvent]:
    """
    Turns two consecutive snapshots into a ledger event.
    Equal values produce nothing; there is no such thing as a zero-change event.
    """
    change = int(new) - int(previous)
    if change == 0:
        return None

    return LedgerEvent(
        player_id=player_id,
        previous_trophies=int(previous),
        new_trophies=int(new),
        trophy_change=change,
        is_gain=change > 0,
        recorded_at=recorded_at,
    )


def classify_series(player_id: int, values: Iterable[tuple[datetime, int]]) -> list[LedgerEvent]:
    """Classify a time-ordered run of (timestamp, trophies) snapshots."""
    events: list[LedgerEvent] = []
    last: Optional[int] = None
    for at, value in values:
        if last is not None:
            ev = classify_change(player_id, last, value, at)
            if ev is not None:
                events.append(ev)
        last = value
    return events
