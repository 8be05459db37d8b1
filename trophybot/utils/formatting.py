# trophybot/utils/formatting.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from aiogram.utils.text_decorations import html_decoration as hd

from trophybot.database.store import DailyAggregate
from trophybot.services.poller import CycleReport
from trophybot.services.season import LeaderboardRow, PlayerReport
from trophybot.utils.windows import current_season, next_daily_reset

MEDALS = {1: "🥇", 2: "🥈", 3: "🥉"}


def format_countdown(delta: timedelta) -> str:
    total = max(0, int(delta.total_seconds()))
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days:
        return f"{days}d {hours}h {minutes}m"
    return f"{hours}h {minutes}m"


def signed(n: int) -> str:
    return f"{n:+d}"


def render_leaderboard(rows: Sequence[LeaderboardRow], now: datetime, limit: int = 25) -> str:
    lines = [
        "🏆 <b>Legend League Leaderboard</b>",
        f"🕔 <b>Updated (UTC):</b> {now:%Y-%m-%d %H:%M}",
        "",
    ]

    if not rows:
        lines.append("ℹ️ No players tracked yet. Use /track &lt;tag&gt;.")
        return "\n".join(lines)

    for row in rows[:limit]:
        medal = MEDALS.get(row.rank, f"{row.rank}.")
        clan = f" · {hd.quote(row.clan_name)}" if row.clan_name else ""
        lines.append(
            f"{medal} {hd.quote(row.name)}{clan} — <b>{row.trophies}</b> 🏆 "
            f"(⚔️{row.gain_count} 🛡{row.loss_count} {signed(row.net_change)})"
        )

    if len(rows) > limit:
        lines.append(f"… and {len(rows) - limit} more")

    return "\n".join(lines)


def _day_line(agg: DailyAggregate) -> str:
    return (
        f"{agg.day.isoformat()}: ⚔️ {agg.gain_count} (+{agg.gain_total}) "
        f"🛡 {agg.loss_count} (-{agg.loss_total}) = <b>{signed(agg.net_change)}</b>"
    )


def render_player_report(report: PlayerReport, *, max_days: int = 7) -> str:
    p = report.player
    s = report.summary
    clan = hd.quote(p.clan_name) if p.clan_name else "No Clan"

    lines = [
        f"👤 <b>{hd.quote(p.name)}</b> #{p.tag}",
        f"🏰 {clan}",
        f"🏆 <b>{p.current_trophies}</b> (season high {report.season_highest})",
        f"📅 {report.season.label.name}, day {report.season.label.day}",
        "",
        f"<b>Today</b> ({report.game_day.isoformat()})",
        f"⚔️ {len(report.gains)} attacks: +{s.gain_total} (avg {s.gain_avg}, best {signed(s.best_gain)})",
        f"🛡 {len(report.losses)} defenses: -{s.loss_total} (avg {s.loss_avg}, worst {signed(s.worst_loss)})",
        f"📈 Net: <b>{signed(s.net_change)}</b>",
    ]

    if report.gains or report.losses:
        lines.append("")
        for c in report.gains:
            lines.append(f"⚔️ #{c.number} {c.recorded_at:%H:%M} {signed(c.change)}")
        for c in report.losses:
            lines.append(f"🛡 #{c.number} {c.recorded_at:%H:%M} {signed(c.change)}")

    lines.append("")
    if report.yesterday is None:
        lines.append("<b>Yesterday:</b> no data")
    else:
        lines.append(f"<b>Yesterday:</b> {_day_line(report.yesterday)}")

    if report.season_days:
        lines.append("")
        lines.append("<b>This season</b>")
        lines.extend(_day_line(d) for d in report.season_days[:max_days])

    if p.last_updated:
        lines.append("")
        lines.append(f"🕔 Last updated {p.last_updated:%Y-%m-%d %H:%M} UTC")

    return "\n".join(lines)


def render_season(now: datetime, override: Optional[datetime] = None) -> str:
    season = current_season(now, override=override)
    daily = next_daily_reset(now)
    return "\n".join(
        [
            f"📅 <b>{season.label.name}</b> — day {season.label.day}",
            f"🟢 Started: {season.start:%Y-%m-%d %H:%M} UTC",
            f"🔁 Next daily reset in <b>{format_countdown(daily - now)}</b> ({daily:%H:%M} UTC)",
            f"🏁 Season ends in <b>{format_countdown(season.end - now)}</b> ({season.end:%Y-%m-%d %H:%M} UTC)",
        ]
    )


def render_cycle(report: CycleReport) -> str:
    c = report.counts
    lines = [
        "🔄 <b>Refresh done</b>",
        f"✅ updated: {c['updated']}  ⏭ skipped: {c['skipped']}  ❌ errors: {c['error']}",
    ]
    for o in report.outcomes:
        if o.status.value == "error":
            lines.append(f"❌ #{o.tag}: {hd.quote(o.detail or '')}")
    return "\n".join(lines)
