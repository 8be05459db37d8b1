# trophybot/database/models/trophy.py
from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from trophybot.database.base import Base


class TrophyEvent(Base):
    """
    Append-only ledger of observed trophy changes. Rows are never updated.
    """
    __tablename__ = "trophy_events"
    __table_args__ = (
        Index("ix_trophy_events_player_time", "player_id", "recorded_at"),
        CheckConstraint("trophy_change != 0", name="ck_trophy_events_change_nonzero"),
        CheckConstraint(
            "new_trophies = previous_trophies + trophy_change",
            name="ck_trophy_events_change_consistent",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[int] = mapped_column(ForeignKey("tracked_players.id", ondelete="CASCADE"), index=True)

    previous_trophies: Mapped[int] = mapped_column(Integer)
    new_trophies: Mapped[int] = mapped_column(Integer)
    trophy_change: Mapped[int] = mapped_column(Integer)
    is_gain: Mapped[bool] = mapped_column(Boolean)

    # naive UTC
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), index=True)


class DailyStats(Base):
    """
    One row per player per game day (05:00 UTC boundary, not midnight).
    Only ever changed with `col = col + delta` upserts.
    """
    __tablename__ = "daily_stats"
    __table_args__ = (
        UniqueConstraint("player_id", "day", name="uq_daily_stats_player_day"),
        Index("ix_daily_stats_day", "day"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[int] = mapped_column(ForeignKey("tracked_players.id", ondelete="CASCADE"), index=True)
    day: Mapped[date] = mapped_column(Date)

    gain_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    gain_total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loss_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loss_total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    net_change: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
