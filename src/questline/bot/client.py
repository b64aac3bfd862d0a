from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass
from typing import Sequence

import discord
from discord.ext import commands

from questline.bot.core.settings import Settings
from questline.bot.services.role_directory import DiscordRoleDirectory
from questline.services.container import ServiceContainer


@dataclass(frozen=True)
class CogSpec:
    key: str
    module: str
    class_name: str


COG_SPECS: tuple[CogSpec, ...] = (
    CogSpec("quest-commands", "questline.bot.cogs.QuestCommandsCog", "QuestCommandsCog"),
    CogSpec("quest-builder", "questline.bot.cogs.QuestBuilderCog", "QuestBuilderCog"),
    CogSpec("activity", "questline.bot.cogs.ActivityCog", "ActivityCog"),
)


def build_default_intents() -> discord.Intents:
    """Return the intents needed for commands, builder mentions and activity."""

    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.members = True
    intents.reactions = True
    return intents


class QuestlineBot(commands.Bot):
    def __init__(
        self,
        settings: Settings,
        services: ServiceContainer,
        role_directory: DiscordRoleDirectory,
    ) -> None:
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=build_default_intents(),
        )
        self._settings = settings
        self._services = services
        self._role_directory = role_directory
        self._log = logging.getLogger(__name__)

    async def setup_hook(self) -> None:
        """Register cogs and sync application commands."""
        self._role_directory.attach_bot(self)
        for spec in COG_SPECS:
            module = importlib.import_module(spec.module)
            cog_cls = getattr(module, spec.class_name)
            await self.add_cog(cog_cls(**self._cog_kwargs(spec.key)))
            self._log.debug("Loaded cog", extra={"cog": spec.key})
        await self._sync_app_commands()

    async def on_ready(self) -> None:
        if self.user is None:
            self._log.warning("Bot ready event fired but bot user is None")
            return
        self._log.info(
            f"Questline bot ready ({self.user.name})",
            extra={"bot_id": self.user.id, "guilds": len(self.guilds)},
        )

    async def _sync_app_commands(self) -> None:
        guild_id = self._settings.guild_id
        try:
            if guild_id is not None:
                guild = discord.Object(id=guild_id)
                self.tree.copy_global_to(guild=guild)
                synced = await self.tree.sync(guild=guild)
                scope = "guild"
            else:
                synced = await self.tree.sync()
                scope = "global"
        except discord.HTTPException as exc:
            self._log.warning("Failed to sync application commands", exc_info=exc)
            return
        self._log.info(
            "Synced application commands",
            extra={"scope": scope, "guild_id": guild_id, "commands": self._command_names(synced)},
        )

    def _command_names(self, synced: Sequence[object]) -> list[str]:
        return sorted(str(getattr(command, "name", "<unknown>")) for command in synced)

    def _cog_kwargs(self, key: str) -> dict[str, object]:
        if key == "quest-commands":
            return {"services": self._services}
        if key == "quest-builder":
            return {"bot": self, "services": self._services}
        if key == "activity":
            return {"bot": self, "activity": self._services.repos.activity}
        raise ValueError(f"Unsupported cog key: {key}")


def build_bot(
    settings: Settings,
    services: ServiceContainer,
    role_directory: DiscordRoleDirectory,
) -> QuestlineBot:
    return QuestlineBot(settings, services, role_directory)
