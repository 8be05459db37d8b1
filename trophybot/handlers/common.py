# trophybot/handlers/common.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from trophybot.keyboards.main import BTN_HELP
from trophybot.utils.reply import reply_safe

router = Router(name="common")

HELP_TEXT = (
    "📌 Available commands:\n"
    "/track &lt;tag&gt; — start tracking a Legend League player\n"
    "/player &lt;tag&gt; — today's attacks/defenses and season history\n"
    "/leaderboard — tracked players by trophies\n"
    "/season — season day and reset timers\n"
    "/help — this message"
)


@router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    await reply_safe(
        message,
        "👋 Welcome!\n\n"
        "I follow Legend League trophies and split them into attacks and defenses per game day "
        "(reset 05:00 UTC).\n\n"
        "Use /help to see commands.",
    )


@router.message(F.text == BTN_HELP)
@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await reply_safe(message, HELP_TEXT)
