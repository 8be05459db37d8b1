# trophybot/handlers/user/router.py
from aiogram import Router

from trophybot.handlers.user.leaderboard import router as leaderboard_router
from trophybot.handlers.user.player import router as player_router
from trophybot.handlers.user.season import router as season_router
from trophybot.handlers.user.track import router as track_router

router = Router(name="user")

router.include_router(track_router)
router.include_router(player_router)
router.include_router(leaderboard_router)
router.include_router(season_router)
