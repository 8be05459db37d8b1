# trophybot/config/settings.py
from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./trophies.db"
DEFAULT_CLASH_API_BASE_URL = "https://cocproxy.royaleapi.dev/v1"


def _require(env: Mapping[str, str], key: str) -> str:
    v = env.get(key)
    if v is None or not v.strip():
        raise RuntimeError(f"Missing required environment variable: {key}")
    return v.strip()


def _to_int(value: str, key_name: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e


def _to_float(value: str, key_name: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid number for {key_name}: {value!r}") from e


def _env_int(env: Mapping[str, str], key: str, default: int, *, minimum: int = 0) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    v = _to_int(raw, key)
    if v < minimum:
        raise RuntimeError(f"{key} must be >= {minimum}, got {v}")
    return v


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    v = _to_float(raw, key)
    if v < 0:
        raise RuntimeError(f"{key} must be >= 0, got {v}")
    return v


def _parse_int_list(raw: str | None, key_name: str) -> list[int]:
    """
    Comma / whitespace separated ints, brackets ignored:
      "951258732", "951258732,123", "[951258732 123]"
    """
    if not raw:
        return []

    cleaned = raw.strip().strip("[](){}").strip()
    if not cleaned:
        return []

    parts = [p.strip().strip("'\"") for p in re.split(r"[,\s]+", cleaned) if p]
    return [_to_int(p, key_name) for p in parts if p]


def _parse_instant(raw: str | None, key_name: str) -> Optional[datetime]:
    """
    ISO-8601 instant ("2026-11-30T05:00:00Z") or unix seconds. Naive -> UTC.
    """
    if not raw or not raw.strip():
        return None
    raw = raw.strip()

    if raw.isdigit():
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)

    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as e:
        raise RuntimeError(f"Invalid instant for {key_name}: {raw!r}") from e

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class Settings:
    # --- required ---
    bot_token: str
    clash_api_key: str

    # --- optional ---
    clash_api_base_url: str = DEFAULT_CLASH_API_BASE_URL
    database_url: str = DEFAULT_DATABASE_URL

    # --- security / admin ---
    root_admin_ids: tuple[int, ...] = ()

    # --- refresh cycle ---
    poll_interval_seconds: int = 300
    batch_size: int = 5
    batch_delay_seconds: float = 1.0
    fetch_timeout_seconds: float = 10.0
    retention_days: int = 60

    # one-off pinned season reset, ignored once it has passed
    season_reset_override: Optional[datetime] = None

    # --- environment ---
    environment: str = "production"  # production | development

    @property
    def is_dev(self) -> bool:
        return self.environment.lower() in {"dev", "development", "local"}

    def is_admin(self, telegram_id: int | None) -> bool:
        return telegram_id is not None and telegram_id in self.root_admin_ids

    @classmethod
    def load(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """
        Loads from process env (and .env if present).
        Fails fast for required fields.
        """
        if env is None:
            load_dotenv()
            env = os.environ

        return cls(
            bot_token=_require(env, "BOT_TOKEN"),
            clash_api_key=_require(env, "CLASH_API_KEY"),
            clash_api_base_url=(env.get("CLASH_API_BASE_URL") or DEFAULT_CLASH_API_BASE_URL).strip(),
            database_url=(env.get("DATABASE_URL") or DEFAULT_DATABASE_URL).strip(),
            root_admin_ids=tuple(_parse_int_list(env.get("ROOT_ADMIN_IDS"), "ROOT_ADMIN_IDS")),
            poll_interval_seconds=_env_int(env, "POLL_INTERVAL_SECONDS", 300, minimum=1),
            batch_size=_env_int(env, "BATCH_SIZE", 5, minimum=1),
            batch_delay_seconds=_env_float(env, "BATCH_DELAY_SECONDS", 1.0),
            fetch_timeout_seconds=_env_float(env, "FETCH_TIMEOUT_SECONDS", 10.0),
            retention_days=_env_int(env, "RETENTION_DAYS", 60, minimum=1),
            season_reset_override=_parse_instant(env.get("SEASON_RESET_OVERRIDE"), "SEASON_RESET_OVERRIDE"),
            environment=(env.get("ENVIRONMENT") or "production").strip() or "production",
        )
