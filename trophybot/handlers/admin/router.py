# trophybot/handlers/admin/router.py
from aiogram import Router

from trophybot.handlers.admin.refresh import router as refresh_router

router = Router(name="admin")

router.include_router(refresh_router)
