# trophybot/handlers/user/season.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message

from trophybot.config.settings import Settings
from trophybot.keyboards.main import BTN_SEASON
from trophybot.services.poller import utc_now
from trophybot.utils.formatting import render_season
from trophybot.utils.reply import reply_safe

router = Router()


@router.message(F.text == BTN_SEASON)
@router.message(Command("season"))
async def season_cmd(message: Message, settings: Settings) -> None:
    await reply_safe(message, render_season(utc_now(), settings.season_reset_override))
