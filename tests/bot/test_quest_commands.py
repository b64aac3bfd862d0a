from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from fakes import make_interaction
from questline.bot import messages
from questline.bot.cogs.QuestCommandsCog import QuestCommandsCog
from questline.domain.models.VerificationModel import NativeCheck, NativeCheckKind
from questline.domain.usecase.errors import InfrastructureFault
from questline.services.rate_limiter import RateLimit, RateLimiter

pytestmark = pytest.mark.asyncio

GUILD = "123456789"
USER = "987654321"


async def _role_quest(create_quest, role_id: str = "42"):
    return await create_quest.execute(
        guild_id=GUILD,
        name="Get verified",
        description="Pick up the verified role",
        xp_reward=25,
        verification=NativeCheck(kind=NativeCheckKind.ROLE, role_id=role_id),
    )


async def test_quest_assignment_is_ephemeral(services, create_quest):
    await _role_quest(create_quest)
    cog = QuestCommandsCog(services=services)
    interaction = make_interaction()

    await cog.handle_quest(interaction)

    interaction.response.defer.assert_awaited_once_with(ephemeral=True, thinking=True)
    text = interaction.followup.send.await_args.args[0]
    assert "**Quest Assigned: Get verified**" in text
    assert interaction.followup.send.await_args.kwargs["ephemeral"] is True


async def test_quest_without_guild_is_refused(services):
    cog = QuestCommandsCog(services=services)
    interaction = make_interaction(guild_id=None)

    await cog.handle_quest(interaction)

    interaction.response.send_message.assert_awaited_once_with(
        messages.GUILD_ONLY, ephemeral=True
    )
    interaction.response.defer.assert_not_called()


async def test_rate_limited_member_is_told_to_wait(services, repos):
    services.rate_limiter = RateLimiter({"quest": RateLimit(1)})
    cog = QuestCommandsCog(services=services)

    await cog.handle_quest(make_interaction())
    second = make_interaction()
    await cog.handle_quest(second)

    second.response.defer.assert_not_called()
    text = second.response.send_message.await_args.args[0]
    assert "Slow Down" in text
    assert "60 minute(s)" in text


async def test_confirm_completes_role_quest(services, create_quest, roles, repos):
    await _role_quest(create_quest)
    cog = QuestCommandsCog(services=services)
    await cog.handle_quest(make_interaction())
    roles.grant(USER, "42")
    interaction = make_interaction()

    await cog.handle_confirm(interaction, None)

    text = interaction.followup.send.await_args.args[0]
    assert "**Quest Complete: Get verified**" in text
    assert "+25 XP" in text
    assert (await repos.xp.get(USER, GUILD)).total_xp == 25


async def test_confirm_failure_shows_attempts_left(services, create_quest):
    await _role_quest(create_quest)
    cog = QuestCommandsCog(services=services)
    await cog.handle_quest(make_interaction())
    interaction = make_interaction()

    await cog.handle_confirm(interaction, None)

    text = interaction.followup.send.await_args.args[0]
    assert "**Verification Failed**" in text
    assert "Attempts remaining: 2" in text


async def test_confirm_without_quest(services):
    cog = QuestCommandsCog(services=services)
    interaction = make_interaction()

    await cog.handle_confirm(interaction, "0xabc")

    interaction.followup.send.assert_awaited_once_with(
        messages.NO_ACTIVE_QUEST, ephemeral=True
    )


async def test_infrastructure_fault_gets_apology(services):
    services.verify_quest = SimpleNamespace(
        execute=AsyncMock(side_effect=InfrastructureFault("mongo down"))
    )
    cog = QuestCommandsCog(services=services)
    interaction = make_interaction()

    await cog.handle_confirm(interaction, "0xabc")

    interaction.followup.send.assert_awaited_once_with(
        messages.SERVICE_APOLOGY, ephemeral=True
    )


async def test_xp_shows_totals(services, repos):
    await repos.xp.add_xp(USER, GUILD, 1500)
    cog = QuestCommandsCog(services=services)
    interaction = make_interaction()

    await cog.handle_xp(interaction)

    text = interaction.followup.send.await_args.args[0]
    assert "**Total XP:** 1,500" in text
    assert "No quests completed yet" in text


async def test_leaderboard_is_public(services, repos):
    await repos.xp.add_xp("1", GUILD, 10)
    await repos.xp.add_xp("2", GUILD, 30)
    cog = QuestCommandsCog(services=services)
    interaction = make_interaction()

    await cog.handle_leaderboard(interaction)

    interaction.response.defer.assert_awaited_once_with(ephemeral=False, thinking=True)
    (text,) = interaction.followup.send.await_args.args
    assert interaction.followup.send.await_args.kwargs == {}
    assert text.index("<@2>") < text.index("<@1>")


def _as_admin(interaction, *, admin: bool = True):
    interaction.user.guild_permissions = SimpleNamespace(administrator=admin)
    return interaction


async def test_questdebug_lists_active_and_inactive_quests(services, create_quest):
    active = await _role_quest(create_quest)
    await create_quest.execute(
        guild_id=GUILD,
        name="Old campaign",
        description="No longer running",
        xp_reward=10,
        verification=NativeCheck(kind=NativeCheckKind.ROLE, role_id="7"),
        active=False,
    )
    cog = QuestCommandsCog(services=services)
    interaction = _as_admin(make_interaction())

    await cog.handle_questdebug(interaction)

    interaction.response.defer.assert_awaited_once_with(ephemeral=True, thinking=True)
    text = interaction.followup.send.await_args.args[0]
    assert "- Total quests: 2" in text
    assert "- Active quests: 1" in text
    assert "- Inactive quests: 1" in text
    assert f"✅ **Get verified**\n   ID: `{active.quest_id}`" in text
    assert "❌ **Old campaign**" in text
    assert "Tasks: 1, 25 XP, completions: 0" in text
    assert interaction.followup.send.await_args.kwargs["ephemeral"] is True


async def test_questdebug_with_no_quests(services):
    cog = QuestCommandsCog(services=services)
    interaction = _as_admin(make_interaction())

    await cog.handle_questdebug(interaction)

    text = interaction.followup.send.await_args.args[0]
    assert "- Total quests: 0" in text
    assert "**No quests found.**" in text


async def test_questdebug_refuses_non_admins(services, create_quest):
    await _role_quest(create_quest)
    cog = QuestCommandsCog(services=services)
    interaction = _as_admin(make_interaction(), admin=False)

    await cog.handle_questdebug(interaction)

    interaction.response.send_message.assert_awaited_once_with(
        messages.ADMIN_ONLY, ephemeral=True
    )
    interaction.response.defer.assert_not_called()
    interaction.followup.send.assert_not_called()


async def test_questdebug_member_without_permissions_is_refused(services):
    cog = QuestCommandsCog(services=services)
    interaction = make_interaction()

    await cog.handle_questdebug(interaction)

    interaction.response.send_message.assert_awaited_once_with(
        messages.ADMIN_ONLY, ephemeral=True
    )


async def test_questdebug_outside_guild_is_refused(services):
    cog = QuestCommandsCog(services=services)
    interaction = make_interaction(guild_id=None)

    await cog.handle_questdebug(interaction)

    interaction.response.send_message.assert_awaited_once_with(
        messages.GUILD_ONLY, ephemeral=True
    )
