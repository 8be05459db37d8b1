from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

# Game days and seasons both roll over at 05:00 UTC
DAILY_RESET_HOUR = 5
SEASON_WEEKDAY = calendar.MONDAY

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


@dataclass(frozen=True, slots=True)
class SeasonLabel:
    name: str  # "October 2026"
    day: int   # 1-based


@dataclass(frozen=True, slots=True)
class Season:
    label: SeasonLabel
    start: datetime
    end: datetime


def _utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        raise ValueError(f"naive datetime is not a valid instant: {now!r}")
    return now.astimezone(timezone.utc)


def reset_instant(day: date, *, reset_hour: int = DAILY_RESET_HOUR) -> datetime:
    return datetime.combine(day, time(hour=reset_hour), tzinfo=timezone.utc)


def is_after_daily_reset(now: datetime, *, reset_hour: int = DAILY_RESET_HOUR) -> bool:
    return _utc(now).hour >= reset_hour


def next_daily_reset(now: datetime, *, reset_hour: int = DAILY_RESET_HOUR) -> datetime:
    """
    Next reset instant strictly after `now`.
    Exactly at the reset -> tomorrow's reset.
    """
    now = _utc(now)
    reset = reset_instant(now.date(), reset_hour=reset_hour)
    if now >= reset:
        reset += timedelta(days=1)
    return reset


def game_day_id(now: datetime, *, reset_hour: int = DAILY_RESET_HOUR) -> date:
    now = _utc(now)
    if is_after_daily_reset(now, reset_hour=reset_hour):
        return now.date()
    return now.date() - timedelta(days=1)


def game_day_bounds(day: date, *, reset_hour: int = DAILY_RESET_HOUR) -> tuple[datetime, datetime]:
    """[start, end) of a game day."""
    start = reset_instant(day, reset_hour=reset_hour)
    return start, start + timedelta(days=1)


def last_weekday_of_month(year: int, month: int, weekday: int = SEASON_WEEKDAY) -> date:
    """
    Walks backwards from the last calendar day until `weekday` matches
    (zero steps when the month already ends on it).
    """
    day = date(year, month, calendar.monthrange(year, month)[1])
    while day.weekday() != weekday:
        day -= timedelta(days=1)
    return day


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    idx = year * 12 + (month - 1) + delta
    return idx // 12, idx % 12 + 1


def _season_boundary(year: int, month: int, *, reset_hour: int) -> datetime:
    return reset_instant(last_weekday_of_month(year, month), reset_hour=reset_hour)


def current_season_start(now: datetime, *, reset_hour: int = DAILY_RESET_HOUR) -> datetime:
    """Last Monday of the month before `now`'s month, at the reset hour."""
    now = _utc(now)
    year, month = _shift_month(now.year, now.month, -1)
    return _season_boundary(year, month, reset_hour=reset_hour)


def previous_season_end(now: datetime, *, reset_hour: int = DAILY_RESET_HOUR) -> datetime:
    return current_season_start(now, reset_hour=reset_hour) - timedelta(seconds=1)


def next_season_reset(
    now: datetime,
    *,
    override: datetime | None = None,
    reset_hour: int = DAILY_RESET_HOUR,
) -> datetime:
    """
    Next season boundary after `now`.

    `override` pins a one-off reset instant; it wins while it is still in
    the future, after that the last-Monday rule applies again.
    """
    now = _utc(now)
    if override is not None and now < _utc(override):
        return _utc(override)

    candidate = _season_boundary(now.year, now.month, reset_hour=reset_hour)
    if now < candidate:
        return candidate

    year, month = _shift_month(now.year, now.month, 1)
    return _season_boundary(year, month, reset_hour=reset_hour)


def current_season_label(now: datetime, *, reset_hour: int = DAILY_RESET_HOUR) -> SeasonLabel:
    now = _utc(now)
    start = current_season_start(now, reset_hour=reset_hour)
    elapsed = int((now - start).total_seconds() // 86400)
    return SeasonLabel(name=f"{MONTH_NAMES[now.month - 1]} {now.year}", day=elapsed + 1)


def current_season(
    now: datetime,
    *,
    override: datetime | None = None,
    reset_hour: int = DAILY_RESET_HOUR,
) -> Season:
    return Season(
        label=current_season_label(now, reset_hour=reset_hour),
        start=current_season_start(now, reset_hour=reset_hour),
        end=next_season_reset(now, override=override, reset_hour=reset_hour),
    )
