from __future__ import annotations

import pytest

from questline.domain.models.AssignmentModel import Assignment
from questline.domain.models.EntityIDModel import QuestID
from questline.domain.models.QuestModel import Quest
from questline.domain.models.VerificationModel import NativeCheck, NativeCheckKind
from questline.domain.usecase.errors import InfrastructureFault

pytestmark = pytest.mark.asyncio


async def test_health(client):
    res = await client.get("/healthz")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


async def test_progress_for_member_with_current_quest(client, api_repos):
    quest = Quest(
        quest_id=QuestID("QUESA1B2C3"),
        guild_id="g1",
        name="Chatter",
        description="Say hi",
        xp_reward=30,
        verification=NativeCheck(kind=NativeCheckKind.MESSAGE_COUNT, threshold=5),
    )
    await api_repos.quests.insert(quest)
    assignment = Assignment.new("u1", "g1", quest.quest_id)
    assignment.attempts = 2
    await api_repos.assignments.atomic_assign(assignment)
    await api_repos.xp.add_xp("u1", "g1", 120)

    res = await client.get("/v1/guilds/g1/users/u1/progress")

    assert res.status_code == 200
    body = res.json()
    assert body["total_xp"] == 120
    assert body["current"] == {
        "quest_id": "QUESA1B2C3",
        "name": "Chatter",
        "current_task": "Chatter",
        "tasks_completed": 0,
        "attempts": 2,
    }


async def test_progress_for_unknown_member_is_empty(client, api_repos):
    body = (await client.get("/v1/guilds/g1/users/nobody/progress")).json()
    assert body["total_xp"] == 0
    assert body["recent"] == []
    assert body["current"] is None


async def test_leaderboard_ranks_and_limits(client, api_repos):
    for user, xp in (("a", 10), ("b", 30), ("c", 20)):
        await api_repos.xp.add_xp(user, "g1", xp)

    res = await client.get("/v1/guilds/g1/leaderboard", params={"limit": 2})

    assert [(e["rank"], e["user_id"]) for e in res.json()] == [(1, "b"), (2, "c")]
    bad = await client.get("/v1/guilds/g1/leaderboard", params={"limit": 0})
    assert bad.status_code == 422


async def test_store_outage_maps_to_503(client, api_repos, monkeypatch):
    async def broken(*args, **kwargs):
        raise InfrastructureFault("mongo down")

    monkeypatch.setattr(api_repos.xp, "leaderboard", broken)

    res = await client.get("/v1/guilds/g1/leaderboard")

    assert res.status_code == 503
