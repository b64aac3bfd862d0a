from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import discord
import pytest

from fakes import InMemoryActivity
from questline.bot.cogs.ActivityCog import ActivityCog
from questline.domain.models.ActivityModel import ActivityKind
from questline.domain.usecase.errors import InfrastructureFault

pytestmark = pytest.mark.asyncio

SENT_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class _Channel(discord.abc.Messageable):
    def __init__(self, author) -> None:
        self._author = author

    async def fetch_message(self, message_id):
        return SimpleNamespace(id=message_id, author=self._author)


def _message(*, poll=None, bot: bool = False, guild: bool = True):
    return SimpleNamespace(
        id=900,
        author=SimpleNamespace(id=11, bot=bot),
        guild=SimpleNamespace(id=1) if guild else None,
        channel=SimpleNamespace(id=5),
        created_at=SENT_AT,
        poll=poll,
    )


def _reaction(*, reactor: int = 22, author: int | None = 11, reactor_bot: bool = False):
    payload = SimpleNamespace(
        guild_id=1,
        channel_id=5,
        message_id=900,
        user_id=reactor,
        member=SimpleNamespace(bot=reactor_bot),
        emoji="🔥",
    )
    if author is not None:
        payload.message_author_id = author
    return payload


def _cog(activity, channel=None) -> ActivityCog:
    bot = SimpleNamespace(get_channel=lambda channel_id: channel)
    return ActivityCog(bot, activity=activity)


async def test_messages_and_polls_are_recorded():
    activity = InMemoryActivity()
    cog = _cog(activity)

    await cog.on_message(_message())
    await cog.on_message(_message(poll=object()))

    kinds = [e.kind for e in activity.events]
    assert kinds == [ActivityKind.MESSAGE, ActivityKind.POLL]
    assert activity.events[0].created_at == SENT_AT
    assert activity.events[0].channel_id == "5"


async def test_bot_and_direct_messages_are_ignored():
    activity = InMemoryActivity()
    cog = _cog(activity)

    await cog.on_message(_message(bot=True))
    await cog.on_message(_message(guild=False))

    assert activity.events == []


async def test_reaction_is_credited_to_message_author():
    activity = InMemoryActivity()
    cog = _cog(activity)

    await cog.on_raw_reaction_add(_reaction())

    (event,) = activity.events
    assert (event.kind, event.user_id, event.actor_id, event.emoji) == (
        ActivityKind.REACTION,
        "11",
        "22",
        "🔥",
    )
    assert await activity.count_reactions_received("11", "1") == 1


async def test_self_and_bot_reactions_earn_nothing():
    activity = InMemoryActivity()
    cog = _cog(activity)

    await cog.on_raw_reaction_add(_reaction(reactor=11))
    await cog.on_raw_reaction_add(_reaction(reactor_bot=True))

    assert activity.events == []


async def test_author_is_fetched_when_payload_lacks_it():
    activity = InMemoryActivity()
    cog = _cog(activity, channel=_Channel(SimpleNamespace(id=11, bot=False)))

    await cog.on_raw_reaction_add(_reaction(author=None))

    assert [e.user_id for e in activity.events] == ["11"]


async def test_reactions_on_bot_messages_are_skipped():
    activity = InMemoryActivity()
    cog = _cog(activity, channel=_Channel(SimpleNamespace(id=99, bot=True)))

    await cog.on_raw_reaction_add(_reaction(author=None))

    assert activity.events == []


async def test_removed_reaction_is_forgotten():
    activity = InMemoryActivity()
    cog = _cog(activity)
    await cog.on_raw_reaction_add(_reaction())

    await cog.on_raw_reaction_remove(_reaction())

    assert await activity.count_reactions_received("11", "1") == 0


async def test_store_outage_does_not_break_the_listener():
    activity = SimpleNamespace(record=AsyncMock(side_effect=InfrastructureFault("down")))
    cog = _cog(activity)

    await cog.on_message(_message())

    activity.record.assert_awaited_once()
