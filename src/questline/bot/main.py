from __future__ import annotations

import asyncio
import logging

from questline.bot.client import build_bot
from questline.bot.core.logging import configure_logging
from questline.bot.core.settings import load_settings
from questline.bot.services.role_directory import DiscordRoleDirectory
from questline.infra.db import close_client, get_db
from questline.services.container import build_container

logger = logging.getLogger(__name__)


async def bootstrap() -> None:
    settings = load_settings()
    if not settings.bot_token:
        raise RuntimeError("Missing required environment variable: BOT_TOKEN")

    db = get_db(settings.db_name)
    role_directory = DiscordRoleDirectory()
    services = build_container(settings, db, role_directory=role_directory)
    await services.start()

    bot = build_bot(settings, services, role_directory)
    try:
        await bot.start(settings.bot_token)
    finally:
        await services.stop()
        await close_client()


def main() -> None:
    configure_logging("bot.log")
    asyncio.run(bootstrap())


if __name__ == "__main__":
    main()
