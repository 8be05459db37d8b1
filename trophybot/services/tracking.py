# trophybot/services/tracking.py
from __future__ import annotations

import enum
import logging
from dataclasses import replace
from datetime import datetime

from trophybot.database.store import PlayerRecord, TrophyStore
from trophybot.services.clash_api import SnapshotSource, normalize_tag
from trophybot.services.errors import Ineligible

log = logging.getLogger(__name__)


class TrackState(str, enum.Enum):
    NEW = "new"
    RESUMED = "resumed"
    ALREADY = "already"


class TrackingService:
    def __init__(self, store: TrophyStore, source: SnapshotSource) -> None:
        self.store = store
        self.source = source

    async def track(self, raw_tag: str, now: datetime) -> tuple[PlayerRecord, TrackState]:
        """
        Start (or resume) tracking a tag.

        Snapshot errors (NotFound / Forbidden / TransientError) propagate;
        players outside Legend League raise Ineligible.

        Only new and resumed players take the snapshot's trophies as their
        baseline. An already tracked player keeps its stored value, the
        poller owns every change from there.
        """
        tag = normalize_tag(raw_tag)
        snap = await self.source.fetch(tag)
        if not snap.eligible:
            raise Ineligible(tag, snap.league_name)

        existing = await self.store.get_player(tag)
        if existing is None:
            state = TrackState.NEW
            record = PlayerRecord(
                tag=tag,
                name=snap.name,
                clan_name=snap.clan_name,
                current_trophies=snap.trophies,
                is_tracking=True,
                last_updated=now,
            )
        elif not existing.is_tracking:
            # paused gap is not history: re-baseline without a ledger event
            state = TrackState.RESUMED
            record = replace(
                existing.with_snapshot(
                    name=snap.name,
                    clan_name=snap.clan_name,
                    trophies=snap.trophies,
                    at=now,
                ),
                is_tracking=True,
            )
        else:
            state = TrackState.ALREADY
            record = replace(existing, name=snap.name, clan_name=snap.clan_name)

        saved = await self.store.upsert_player(record)
        if state is not TrackState.ALREADY:
            log.info("Tracking #%s (%s, %d trophies, %s)", tag, snap.name, snap.trophies, state.value)

        return saved, state
