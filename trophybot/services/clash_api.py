# trophybot/services/clash_api.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol
from urllib.parse import quote

import aiohttp

from trophybot.services.errors import Forbidden, NotFound, TransientError

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://cocproxy.royaleapi.dev/v1"
LEGEND_LEAGUE_ID = 29000022


def normalize_tag(raw: str) -> str:
    """
    "#2pp", " 2PP " -> "2PP". Stored and compared without the "#".
    """
    tag = (raw or "").strip().lstrip("#").strip().upper()
    if not tag or not tag.isalnum():
        raise ValueError(f"Invalid player tag: {raw!r}")
    return tag


@dataclass(frozen=True, slots=True)
class PlayerSnapshot:
    tag: str
    name: str
    clan_name: Optional[str]
    trophies: int
    league_id: Optional[int]
    league_name: Optional[str]
    eligible: bool


class SnapshotSource(Protocol):
    async def fetch(self, tag: str) -> PlayerSnapshot:
        """Raises NotFound, Forbidden or TransientError."""
        ...


def snapshot_from_payload(tag: str, data: dict[str, Any], *, league_id: int = LEGEND_LEAGUE_ID) -> PlayerSnapshot:
    league = data.get("league") or {}
    clan = data.get("clan") or {}

    try:
        trophies = int(data.get("trophies") or 0)
    except (TypeError, ValueError) as e:
        raise TransientError(f"Bad trophies value for #{tag}: {data.get('trophies')!r}") from e

    lid = league.get("id")
    return PlayerSnapshot(
        tag=tag,
        name=str(data.get("name") or ""),
        clan_name=clan.get("name") or None,
        trophies=trophies,
        league_id=int(lid) if lid is not None else None,
        league_name=league.get("name"),
        eligible=lid is not None and int(lid) == league_id,
    )


class ClashApiClient:
    """
    Clash of Clans player endpoint. One aiohttp session for the process,
    created lazily, closed by `close()`.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        league_id: int = LEGEND_LEAGUE_ID,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.league_id = league_id
        self._session = session

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Accept": "application/json",
                },
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    def player_url(self, tag: str) -> str:
        return f"{self.base_url}/players/{quote('#' + tag, safe='')}"

    async def fetch(self, tag: str) -> PlayerSnapshot:
        tag = normalize_tag(tag)
        url = self.player_url(tag)

        try:
            async with self._get_session().get(url) as resp:
                if resp.status == 404:
                    raise NotFound(f"Player #{tag} not found")
                if resp.status == 403:
                    raise Forbidden("API access denied. Check the API key and IP restrictions.")
                if resp.status >= 400:
                    body = await resp.text()
                    raise TransientError(f"API returned {resp.status}: {body[:200]}")

                try:
                    data = await resp.json(content_type=None)
                except ValueError as e:
                    raise TransientError(f"Failed to parse player data for #{tag}") from e
        except aiohttp.ClientError as e:
            raise TransientError(f"Request for #{tag} failed: {e}") from e

        if not isinstance(data, dict):
            raise TransientError(f"Unexpected payload for #{tag}")

        return snapshot_from_payload(tag, data, league_id=self.league_id)
