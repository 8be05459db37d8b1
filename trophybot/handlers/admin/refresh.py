# trophybot/handlers/admin/refresh.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from trophybot.config.settings import Settings
from trophybot.services.container import Services
from trophybot.utils.formatting import render_cycle
from trophybot.utils.reply import reply_safe

router = Router()


@router.message(Command("refresh"))
async def refresh_cmd(message: Message, settings: Settings, services: Services) -> None:
    tg = message.from_user
    if not settings.is_admin(tg.id if tg else None):
        await reply_safe(message, "⛔ You are not allowed.")
        return

    if services.poller.running:
        await reply_safe(message, "⏳ A refresh is already running, yours will start after it.")

    report = await services.poller.run_cycle()
    await reply_safe(message, render_cycle(report))
