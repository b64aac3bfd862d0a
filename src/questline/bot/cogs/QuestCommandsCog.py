from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from questline.bot import messages
from questline.domain.usecase.errors import InfrastructureFault, UserInputError
from questline.domain.usecase.quests import (
    AssignmentOutcome,
    AssignmentStatusCode,
    VerificationOutcome,
    VerificationStatusCode,
)
from questline.services.container import ServiceContainer


def is_administrator(member: object) -> bool:
    permissions = getattr(member, "guild_permissions", None)
    return bool(permissions is not None and permissions.administrator)


def render_assignment(outcome: AssignmentOutcome) -> str:
    if outcome.status is AssignmentStatusCode.NO_QUESTS:
        return messages.NO_QUESTS_AVAILABLE
    if outcome.status is AssignmentStatusCode.ALL_COMPLETED:
        return messages.all_quests_completed(outcome.total_xp, outcome.quests_completed)
    assert outcome.quest is not None
    if outcome.status is AssignmentStatusCode.ALREADY_ASSIGNED:
        return messages.quest_already_assigned(outcome.quest, outcome.assignment)
    return messages.quest_assigned(outcome.quest)


def render_verification(outcome: VerificationOutcome) -> str:
    if outcome.status is VerificationStatusCode.NO_ACTIVE_QUEST:
        return messages.NO_ACTIVE_QUEST
    if outcome.status is VerificationStatusCode.ATTEMPTS_EXHAUSTED:
        return messages.attempts_exhausted(outcome)
    if outcome.status is VerificationStatusCode.VERIFICATION_FAILED:
        return messages.verification_failed(outcome)
    if outcome.status is VerificationStatusCode.TASK_COMPLETED:
        return messages.task_completed(outcome)
    return messages.quest_completed(outcome)


class QuestCommandsCog(commands.Cog):
    """Slash commands: quest, confirm, xp, leaderboard and the admin questdebug."""

    def __init__(self, *, services: ServiceContainer) -> None:
        self._services = services
        self._log = logging.getLogger(__name__)

    @app_commands.command(name="quest", description="Get a quest to complete.")
    @app_commands.guild_only()
    async def quest(self, interaction: discord.Interaction) -> None:
        await self.handle_quest(interaction)

    @app_commands.command(name="confirm", description="Verify your current quest.")
    @app_commands.describe(
        identifier="Wallet address, email, handle or ID the quest asks for"
    )
    @app_commands.guild_only()
    async def confirm(
        self, interaction: discord.Interaction, identifier: Optional[str] = None
    ) -> None:
        await self.handle_confirm(interaction, identifier)

    @app_commands.command(name="xp", description="Show your XP and quest history.")
    @app_commands.guild_only()
    async def xp(self, interaction: discord.Interaction) -> None:
        await self.handle_xp(interaction)

    @app_commands.command(name="leaderboard", description="Show the top questers.")
    @app_commands.guild_only()
    async def leaderboard(self, interaction: discord.Interaction) -> None:
        await self.handle_leaderboard(interaction)

    @app_commands.command(
        name="questdebug", description="Check quest status in this server (admin only)."
    )
    @app_commands.default_permissions(administrator=True)
    @app_commands.guild_only()
    async def questdebug(self, interaction: discord.Interaction) -> None:
        await self.handle_questdebug(interaction)

    # ---------- Handlers ----------

    async def handle_quest(self, interaction: discord.Interaction) -> None:
        ids = await self._begin(interaction, "quest")
        if ids is None:
            return
        user_id, guild_id = ids
        try:
            outcome = await self._services.assign_quest.execute(user_id, guild_id)
        except InfrastructureFault:
            await self._apologise(interaction, "quest")
            return
        self._log.info(
            "Quest command handled",
            extra={"user_id": user_id, "guild_id": guild_id, "status": outcome.status.value},
        )
        await interaction.followup.send(render_assignment(outcome), ephemeral=True)

    async def handle_confirm(
        self, interaction: discord.Interaction, identifier: Optional[str]
    ) -> None:
        ids = await self._begin(interaction, "confirm")
        if ids is None:
            return
        user_id, guild_id = ids
        try:
            outcome = await self._services.verify_quest.execute(
                user_id, guild_id, identifier
            )
        except UserInputError as exc:
            await interaction.followup.send(str(exc), ephemeral=True)
            return
        except InfrastructureFault:
            await self._apologise(interaction, "confirm")
            return
        self._log.info(
            "Confirm command handled",
            extra={"user_id": user_id, "guild_id": guild_id, "status": outcome.status.value},
        )
        await interaction.followup.send(render_verification(outcome), ephemeral=True)

    async def handle_xp(self, interaction: discord.Interaction) -> None:
        ids = await self._begin(interaction, "xp")
        if ids is None:
            return
        user_id, guild_id = ids
        try:
            progress = await self._services.user_progress.execute(user_id, guild_id)
        except InfrastructureFault:
            await self._apologise(interaction, "xp")
            return
        await interaction.followup.send(messages.progress(progress), ephemeral=True)

    async def handle_leaderboard(self, interaction: discord.Interaction) -> None:
        ids = await self._begin(interaction, "leaderboard", ephemeral=False)
        if ids is None:
            return
        _, guild_id = ids
        try:
            entries = await self._services.leaderboard.execute(guild_id)
        except InfrastructureFault:
            await self._apologise(interaction, "leaderboard")
            return
        await interaction.followup.send(messages.leaderboard(entries))

    async def handle_questdebug(self, interaction: discord.Interaction) -> None:
        # default_permissions only hides the command; enforce it here too.
        if interaction.guild is not None and not is_administrator(interaction.user):
            self._log.warning(
                "Unauthorized questdebug attempt",
                extra={
                    "user_id": str(interaction.user.id),
                    "guild_id": str(interaction.guild.id),
                },
            )
            await interaction.response.send_message(messages.ADMIN_ONLY, ephemeral=True)
            return
        ids = await self._begin(interaction, "questdebug")
        if ids is None:
            return
        user_id, guild_id = ids
        try:
            quests = await self._services.list_quests.execute(guild_id, include_inactive=True)
        except InfrastructureFault:
            await self._apologise(interaction, "questdebug")
            return
        self._log.info(
            "Questdebug command handled",
            extra={"user_id": user_id, "guild_id": guild_id, "quests": len(quests)},
        )
        for chunk in messages.split_message(messages.quest_debug(quests)):
            await interaction.followup.send(chunk, ephemeral=True)

    # ---------- Helpers ----------

    async def _begin(
        self, interaction: discord.Interaction, action: str, *, ephemeral: bool = True
    ) -> Optional[tuple[str, str]]:
        """Check guild scope and rate limit, then defer. Returns (user, guild) ids."""
        if interaction.guild is None:
            await interaction.response.send_message(messages.GUILD_ONLY, ephemeral=True)
            return None
        user_id = str(interaction.user.id)
        decision = self._services.rate_limiter.check(user_id, action)
        if not decision.allowed:
            await interaction.response.send_message(
                messages.rate_limited(action, decision.retry_after_seconds),
                ephemeral=True,
            )
            return None
        await interaction.response.defer(ephemeral=ephemeral, thinking=True)
        return user_id, str(interaction.guild.id)

    async def _apologise(self, interaction: discord.Interaction, action: str) -> None:
        self._log.exception(
            "Quest command failed",
            extra={"command": action, "user_id": str(interaction.user.id)},
        )
        await interaction.followup.send(messages.SERVICE_APOLOGY, ephemeral=True)
