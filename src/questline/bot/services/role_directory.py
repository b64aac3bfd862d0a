from __future__ import annotations

import logging

import discord
from discord.ext import commands

from questline.domain.usecase.errors import TransientIntegrationFailure


class DiscordRoleDirectory:
    """Answers role-membership questions from the connected Discord client."""

    def __init__(self) -> None:
        self._bot: commands.Bot | None = None
        self._log = logging.getLogger(__name__)

    def attach_bot(self, bot: commands.Bot) -> None:
        self._bot = bot

    async def has_role(self, user_id: str, guild_id: str, role_id: str) -> bool:
        bot = self._bot
        if bot is None:
            raise TransientIntegrationFailure("Discord client is not ready", source="discord")

        guild = bot.get_guild(int(guild_id))
        if guild is None:
            self._log.debug("Role check for unknown guild", extra={"guild_id": guild_id})
            return False

        member = guild.get_member(int(user_id))
        if member is None:
            try:
                member = await guild.fetch_member(int(user_id))
            except discord.NotFound:
                return False
            except discord.HTTPException as exc:
                raise TransientIntegrationFailure(
                    f"Could not fetch member: {exc}", source="discord"
                ) from exc

        return any(role.id == int(role_id) for role in member.roles)
