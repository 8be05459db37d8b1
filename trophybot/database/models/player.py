# trophybot/database/models/player.py
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from trophybot.database.base import Base


class TrackedPlayer(Base):
    __tablename__ = "tracked_players"

    id: Mapped[int] = mapped_column(primary_key=True)

    # stored without the leading "#"
    player_tag: Mapped[str] = mapped_column(String(16), unique=True, index=True)

    name: Mapped[str] = mapped_column(String(64), default="")
    clan_name: Mapped[str | None] = mapped_column(String(64), nullable=True)

    current_trophies: Mapped[int] = mapped_column(Integer, default=0, index=True)
    is_tracking: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    last_updated: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), server_default=func.now())
