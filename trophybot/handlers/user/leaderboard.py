# trophybot/handlers/user/leaderboard.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message

from trophybot.keyboards.main import BTN_LEADERBOARD
from trophybot.services.container import Services
from trophybot.services.poller import utc_now
from trophybot.utils.formatting import render_leaderboard
from trophybot.utils.reply import reply_safe

router = Router()


@router.message(F.text == BTN_LEADERBOARD)
@router.message(Command("leaderboard"))
async def leaderboard_cmd(message: Message, services: Services) -> None:
    now = utc_now()
    rows = await services.season.build_leaderboard(now)
    await reply_safe(message, render_leaderboard(rows, now))
