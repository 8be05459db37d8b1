# trophybot/main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from trophybot.config import Settings
from trophybot.database import Database
from trophybot.database.sql_store import SqlTrophyStore
from trophybot.handlers import router as handlers_router
from trophybot.scheduler import setup_scheduler
from trophybot.services.clash_api import ClashApiClient
from trophybot.services.container import Services


def setup_logging(is_dev: bool) -> None:
    """
    Clean production logging:
    - app logs: INFO (or DEBUG in dev)
    - library logs: WARNING+ (no query/pool/request spam)
    """
    app_level = logging.DEBUG if is_dev else logging.INFO

    logging.basicConfig(
        level=app_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    for name in (
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "sqlalchemy.orm",
        "aiosqlite",
        "asyncpg",
        "aiohttp",
        "apscheduler",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    log = logging.getLogger("trophybot")

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    clash = ClashApiClient(settings.clash_api_key, base_url=settings.clash_api_base_url)
    services = Services.build(settings, SqlTrophyStore(db), clash)

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    dp = Dispatcher()

    # Inject workflow data
    dp.workflow_data["settings"] = settings
    dp.workflow_data["services"] = services

    dp.include_router(handlers_router)

    scheduler = setup_scheduler(poller=services.poller, settings=settings)
    log.info(
        "Scheduler started (every %ss, batches of %s)",
        settings.poll_interval_seconds,
        settings.batch_size,
    )

    try:
        await dp.start_polling(bot)
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    except Exception:
        log.exception("Bot crashed")
        raise
    finally:
        try:
            scheduler.shutdown(wait=False)
        except Exception:
            log.exception("Failed to shutdown scheduler")

        try:
            await clash.close()
        except Exception:
            log.exception("Failed to close Clash API session")

        try:
            await db.close()
        except Exception:
            log.exception("Failed to close DB")

        try:
            await bot.session.close()
        except Exception:
            log.exception("Failed to close bot session")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
