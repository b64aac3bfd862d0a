from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from questline.bot.services.role_directory import DiscordRoleDirectory
from questline.domain.usecase.errors import TransientIntegrationFailure

pytestmark = pytest.mark.asyncio


def _bot(guild):
    return SimpleNamespace(get_guild=lambda guild_id: guild)


def _member(*role_ids: int):
    return SimpleNamespace(roles=[SimpleNamespace(id=rid) for rid in role_ids])


def _http_error(cls, status: int):
    return cls(SimpleNamespace(status=status, reason="error"), "failed")


async def test_requires_connected_client():
    with pytest.raises(TransientIntegrationFailure):
        await DiscordRoleDirectory().has_role("1", "2", "3")


async def test_cached_member_roles_are_checked():
    guild = SimpleNamespace(get_member=lambda user_id: _member(3, 4), fetch_member=AsyncMock())
    directory = DiscordRoleDirectory()
    directory.attach_bot(_bot(guild))

    assert await directory.has_role("1", "2", "4") is True
    assert await directory.has_role("1", "2", "5") is False
    guild.fetch_member.assert_not_called()


async def test_uncached_member_is_fetched():
    guild = SimpleNamespace(
        get_member=lambda user_id: None, fetch_member=AsyncMock(return_value=_member(7))
    )
    directory = DiscordRoleDirectory()
    directory.attach_bot(_bot(guild))

    assert await directory.has_role("1", "2", "7") is True


async def test_unknown_guild_or_member_has_no_role():
    directory = DiscordRoleDirectory()
    directory.attach_bot(_bot(None))
    assert await directory.has_role("1", "2", "7") is False

    guild = SimpleNamespace(
        get_member=lambda user_id: None,
        fetch_member=AsyncMock(side_effect=_http_error(discord.NotFound, 404)),
    )
    directory.attach_bot(_bot(guild))
    assert await directory.has_role("1", "2", "7") is False


async def test_discord_errors_are_transient():
    guild = SimpleNamespace(
        get_member=lambda user_id: None,
        fetch_member=AsyncMock(side_effect=_http_error(discord.HTTPException, 500)),
    )
    directory = DiscordRoleDirectory()
    directory.attach_bot(_bot(guild))

    with pytest.raises(TransientIntegrationFailure):
        await directory.has_role("1", "2", "7")
