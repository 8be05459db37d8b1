# trophybot/utils/reply.py
from __future__ import annotations

from aiogram.types import Message

from trophybot.keyboards.main import main_menu_kb

# Telegram rejects longer messages
MAX_MESSAGE_LEN = 4096


def split_lines(text: str, limit: int = MAX_MESSAGE_LEN) -> list[str]:
    """Split on line boundaries so HTML tags are never cut in half."""
    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit and current:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks or [""]


async def reply_safe(message: Message, text: str, **kwargs) -> None:
    """
    Menu keyboard only in private chats; long texts sent in several messages.
    """
    if message.chat.type == "private":
        kwargs.setdefault("reply_markup", main_menu_kb())
    else:
        kwargs.setdefault("reply_markup", None)

    kwargs.setdefault("parse_mode", "HTML")
    for chunk in split_lines(text):
        await message.answer(chunk, **kwargs)
