# trophybot/handlers/user/player.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd

from trophybot.services.clash_api import normalize_tag
from trophybot.services.container import Services
from trophybot.services.errors import NotFound
from trophybot.services.poller import utc_now
from trophybot.utils.formatting import render_player_report
from trophybot.utils.reply import reply_safe

router = Router()


@router.message(Command("player"))
async def player_cmd(message: Message, command: CommandObject, services: Services) -> None:
    raw = (command.args or "").strip()
    if not raw:
        await reply_safe(message, "Usage: /player &lt;player tag&gt;")
        return

    try:
        tag = normalize_tag(raw)
    except ValueError:
        await reply_safe(message, f"⚠️ {hd.quote(raw)} is not a valid player tag.")
        return

    try:
        report = await services.season.player_report(tag, utc_now())
    except NotFound:
        await reply_safe(message, f"ℹ️ #{tag} is not tracked yet. Use /track {tag}")
        return

    await reply_safe(message, render_player_report(report))
