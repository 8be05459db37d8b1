# trophybot/handlers/user/track.py
from __future__ import annotations

import logging

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd

from trophybot.services.container import Services
from trophybot.services.errors import Forbidden, Ineligible, NotFound, StorageError, TransientError
from trophybot.services.poller import utc_now
from trophybot.services.tracking import TrackState
from trophybot.utils.reply import reply_safe

log = logging.getLogger(__name__)

router = Router()

TRACK_VERBS = {
    TrackState.NEW: "Now tracking",
    TrackState.RESUMED: "Resumed tracking",
    TrackState.ALREADY: "Already tracking",
}


@router.message(Command("track"))
async def track_cmd(message: Message, command: CommandObject, services: Services) -> None:
    raw = (command.args or "").strip()
    if not raw:
        await reply_safe(message, "Usage: /track &lt;player tag&gt;  e.g. /track #2PP")
        return

    try:
        player, state = await services.tracking.track(raw, utc_now())
    except ValueError:
        await reply_safe(message, f"⚠️ {hd.quote(raw)} is not a valid player tag.")
        return
    except NotFound:
        await reply_safe(message, "⚠️ Player not found.")
        return
    except Ineligible as e:
        await reply_safe(message, f"⚠️ Player is not in Legend League ({hd.quote(e.league or 'Unknown')}).")
        return
    except Forbidden:
        log.error("Clash API denied access while tracking %s", raw)
        await reply_safe(message, "⚠️ API access denied. Please tell an admin.")
        return
    except (TransientError, StorageError):
        log.exception("Failed to track %s", raw)
        await reply_safe(message, "⚠️ Something went wrong. Please try again.")
        return

    verb = TRACK_VERBS[state]
    await reply_safe(
        message,
        f"✅ {verb} <b>{hd.quote(player.name)}</b> #{player.tag} — <b>{player.current_trophies}</b> 🏆",
    )
