"""Authoring a quest through the builder and playing it through to the end."""

from __future__ import annotations

import json

import pytest

from fakes import ScriptedCompletion
from questline.authoring.builder import BuilderState, QuestBuilder
from questline.domain.models.VerificationModel import ConnectorCheck, NativeCheck
from questline.domain.usecase.quests import AssignmentStatusCode, VerificationStatusCode

pytestmark = pytest.mark.asyncio

GUILD = "g1"
MEMBER = "m1"

QUEST_BLOCK = {
    "name": "Community onboarding",
    "description": "Get verified, then link your wallet",
    "tasks": [
        {
            "title": "Get verified",
            "points": 50,
            "verification": {
                "type": "native",
                "check": "discord_role",
                "role_id": "555",
                "role_name": "Verified",
            },
        },
        {
            "title": "Hold a pass",
            "points": 150,
            "verification": {
                "type": "connector",
                "identifier_type": "wallet_address",
                "api_key_env_var": "PASS_API_KEY",
                "connector": {
                    "name": "Pass holder",
                    "endpoint": "https://api.example.com/owners/{{walletAddress}}",
                    "method": "GET",
                    "headers": {},
                    "body": {},
                    "validationFn": {"op": "count", "path": "passes", "compare": ">", "value": 0},
                },
            },
        },
    ],
}


async def test_built_quest_is_assigned_verified_in_order_and_pays_out(
    repos, connectors, roles, create_quest, assign_quest, verify_quest
):
    builder = QuestBuilder(
        conversations=repos.conversations,
        completion=ScriptedCompletion(
            [
                "Sounds good. What should members do first?",
                "Here is the final quest:\n```quest\n" + json.dumps(QUEST_BLOCK) + "\n```",
            ]
        ),
        connectors=connectors,
        create_quest=create_quest,
    )

    first = await builder.handle_message("admin", GUILD, "c1", "create a quest for onboarding")
    assert first.state is BuilderState.GATHERING
    done = await builder.handle_message("admin", GUILD, "c1", "role first, then a pass. confirm")
    assert done.state is BuilderState.COMPLETE

    quest = done.quest
    tasks = quest.task_sequence()
    assert [t.title for t in tasks] == ["Get verified", "Hold a pass"]
    assert isinstance(tasks[0].verification, NativeCheck)
    assert isinstance(tasks[1].verification, ConnectorCheck)
    assert tasks[1].verification.connector_id == 101
    assert quest.xp_reward == 200
    assert connectors.registered[0].headers["Authorization"] == "Bearer {{apiKey}}"

    assigned = await assign_quest.execute(MEMBER, GUILD)
    assert assigned.status is AssignmentStatusCode.ASSIGNED
    assert assigned.quest.quest_id == quest.quest_id

    roles.grant(MEMBER, "555")
    step_one = await verify_quest.execute(MEMBER, GUILD)
    assert step_one.status is VerificationStatusCode.TASK_COMPLETED
    assert step_one.points_awarded == 50

    connectors.valid_values.add("0xpass")
    step_two = await verify_quest.execute(MEMBER, GUILD, "0xpass")
    assert step_two.status is VerificationStatusCode.QUEST_COMPLETED
    assert step_two.total_xp == 50 + 150
    assert connectors.tests == [(101, "validate", {"walletAddress": "0xpass"})]

    xp = await repos.xp.get(MEMBER, GUILD)
    assert (xp.total_xp, xp.quests_completed) == (200, 1)
    again = await assign_quest.execute(MEMBER, GUILD)
    assert again.status is AssignmentStatusCode.ALL_COMPLETED
    assert again.total_xp == 200
