# trophybot/keyboards/main.py
from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

BTN_LEADERBOARD = "🏆 Leaderboard"
BTN_SEASON = "📅 Season"
BTN_HELP = "❓ Help"


def main_menu_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_LEADERBOARD), KeyboardButton(text=BTN_SEASON)],
            [KeyboardButton(text=BTN_HELP)],
        ],
        resize_keyboard=True,
        input_field_placeholder="/player <tag>",
        selective=False,
        one_time_keyboard=False,
    )
