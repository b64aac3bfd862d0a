from __future__ import annotations

import logging
import re
from typing import Optional

import discord
from discord.ext import commands

from questline.authoring.builder import BuilderState, should_trigger
from questline.authoring.prompts import BUILDER_APOLOGY, BUILDER_HINT, PERMISSION_DENIED
from questline.bot import messages
from questline.domain.usecase.errors import InfrastructureFault
from questline.services.container import ServiceContainer

_MENTION = re.compile(r"<@!?\d+>")


def can_create_quests(member: object) -> bool:
    """Administrators, guild managers and channel managers may author quests."""
    permissions = getattr(member, "guild_permissions", None)
    if permissions is None:
        return False
    return bool(
        permissions.administrator or permissions.manage_guild or permissions.manage_channels
    )


def strip_mentions(content: str) -> str:
    return _MENTION.sub("", content).strip()


class QuestBuilderCog(commands.Cog):
    """Routes admin messages that mention the bot into the quest builder."""

    def __init__(self, bot: commands.Bot, *, services: ServiceContainer) -> None:
        self.bot = bot
        self._services = services
        self._log = logging.getLogger(__name__)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        bot_user = self.bot.user
        if bot_user is None or not message.mentions:
            return
        if not any(user.id == bot_user.id for user in message.mentions):
            return
        reply = await self.handle_mention(message)
        if reply:
            for chunk in messages.split_message(reply):
                await message.reply(chunk)

    async def handle_mention(self, message: discord.Message) -> Optional[str]:
        """Return the text to reply with, or None to stay silent."""
        builder = self._services.builder
        guild = message.guild
        if builder is None or guild is None:
            return None

        user_id, guild_id = str(message.author.id), str(guild.id)
        content = strip_mentions(message.content)

        if not can_create_quests(message.author):
            return PERMISSION_DENIED if should_trigger(content) else None

        try:
            state = await builder.conversation_state(user_id, guild_id)
        except InfrastructureFault:
            self._log.exception("Builder state lookup failed", extra={"user_id": user_id})
            return BUILDER_APOLOGY

        if state is not BuilderState.GATHERING and not should_trigger(content):
            return BUILDER_HINT

        decision = self._services.rate_limiter.check(user_id, "builder")
        if not decision.allowed:
            return messages.rate_limited("quest builder", decision.retry_after_seconds)

        try:
            async with message.channel.typing():
                reply = await builder.handle_message(
                    user_id, guild_id, str(message.channel.id), content
                )
        except InfrastructureFault:
            self._log.exception(
                "Quest builder turn failed",
                extra={"user_id": user_id, "guild_id": guild_id},
            )
            return BUILDER_APOLOGY

        if reply.state is BuilderState.COMPLETE and reply.quest is not None:
            self._log.info(
                "Quest created through builder",
                extra={
                    "user_id": user_id,
                    "guild_id": guild_id,
                    "quest_id": str(reply.quest.quest_id),
                },
            )
        return reply.text
