from __future__ import annotations

import logging
from typing import Optional

import discord
from discord.ext import commands

from questline.domain.models.ActivityModel import ActivityEvent, ActivityKind
from questline.domain.usecase.errors import InfrastructureFault
from questline.domain.usecase.ports import ActivityLog


class ActivityCog(commands.Cog):
    """Records messages, polls and reactions used by Discord-native checks."""

    def __init__(self, bot: commands.Bot, *, activity: ActivityLog) -> None:
        self.bot = bot
        self._activity = activity
        self._log = logging.getLogger(__name__)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot or message.guild is None:
            return
        base = dict(
            guild_id=str(message.guild.id),
            channel_id=str(message.channel.id),
            message_id=str(message.id),
            user_id=str(message.author.id),
            created_at=message.created_at,
        )
        await self._record(ActivityEvent(kind=ActivityKind.MESSAGE, **base))
        if getattr(message, "poll", None) is not None:
            await self._record(ActivityEvent(kind=ActivityKind.POLL, **base))

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        if payload.guild_id is None:
            return
        if payload.member is not None and payload.member.bot:
            return
        author_id = await self._message_author_id(payload)
        # Self-reactions earn nothing.
        if author_id is None or author_id == payload.user_id:
            return
        await self._record(
            ActivityEvent(
                kind=ActivityKind.REACTION,
                guild_id=str(payload.guild_id),
                channel_id=str(payload.channel_id),
                message_id=str(payload.message_id),
                user_id=str(author_id),
                actor_id=str(payload.user_id),
                emoji=str(payload.emoji),
            )
        )

    @commands.Cog.listener()
    async def on_raw_reaction_remove(self, payload: discord.RawReactionActionEvent) -> None:
        if payload.guild_id is None:
            return
        try:
            await self._activity.remove_reaction(
                str(payload.message_id), str(payload.user_id), str(payload.emoji)
            )
        except InfrastructureFault:
            self._log.exception(
                "Failed to remove reaction", extra={"message_id": payload.message_id}
            )

    async def _message_author_id(
        self, payload: discord.RawReactionActionEvent
    ) -> Optional[int]:
        author_id = getattr(payload, "message_author_id", None)
        if author_id is not None:
            return author_id
        channel = self.bot.get_channel(payload.channel_id)
        if not isinstance(channel, discord.abc.Messageable):
            return None
        try:
            message = await channel.fetch_message(payload.message_id)
        except discord.HTTPException as exc:
            self._log.debug(
                "Could not resolve reacted message",
                extra={"message_id": payload.message_id, "error": str(exc)},
            )
            return None
        if message.author.bot:
            return None
        return message.author.id

    async def _record(self, event: ActivityEvent) -> None:
        try:
            await self._activity.record(event)
        except InfrastructureFault:
            self._log.exception(
                "Failed to record activity",
                extra={"kind": event.kind.value, "message_id": event.message_id},
            )
