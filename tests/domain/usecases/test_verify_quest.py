from __future__ import annotations

import pytest

from questline.domain.models.AssignmentModel import AssignmentStatus
from questline.domain.models.VerificationModel import (
    ConnectorCheck,
    IdentifierType,
    NativeCheck,
    NativeCheckKind,
)
from questline.domain.usecase.errors import UserInputError
from questline.domain.usecase.quests import TaskSpec, VerificationStatusCode

pytestmark = pytest.mark.asyncio

GUILD = "g1"
USER = "u1"


async def _assigned(assign_quest, create_quest, **quest_kwargs):
    quest = await create_quest.execute(
        guild_id=GUILD, name="Onboarding", description="Get started", **quest_kwargs
    )
    outcome = await assign_quest.execute(USER, GUILD)
    return quest, outcome.assignment


async def _wallet_quest(assign_quest, create_quest):
    return await _assigned(
        assign_quest,
        create_quest,
        verification=ConnectorCheck(
            connector_id=9, identifier_type=IdentifierType.WALLET_ADDRESS
        ),
        xp_reward=200,
    )


async def test_no_active_quest(verify_quest):
    outcome = await verify_quest.execute(USER, GUILD, "0xabc")
    assert outcome.status is VerificationStatusCode.NO_ACTIVE_QUEST


async def test_missing_or_short_identifier_is_rejected_without_spending_attempts(
    verify_quest, assign_quest, create_quest, repos, connectors
):
    _, assignment = await _wallet_quest(assign_quest, create_quest)

    with pytest.raises(UserInputError):
        await verify_quest.execute(USER, GUILD, None)
    with pytest.raises(UserInputError):
        await verify_quest.execute(USER, GUILD, "  ab ")

    assert repos.assignments.store[str(assignment.assignment_id)].attempts == 0
    assert connectors.tests == []


async def test_failed_verification_reports_remaining_attempts(
    verify_quest, assign_quest, create_quest
):
    await _wallet_quest(assign_quest, create_quest)

    outcome = await verify_quest.execute(USER, GUILD, "0xnope")

    assert outcome.status is VerificationStatusCode.VERIFICATION_FAILED
    assert outcome.attempts_remaining == 2
    assert outcome.result.verified is False


async def test_attempt_cap_fails_assignment_and_stops_calling_out(
    verify_quest, assign_quest, create_quest, repos, connectors
):
    _, assignment = await _wallet_quest(assign_quest, create_quest)

    for _ in range(3):
        outcome = await verify_quest.execute(USER, GUILD, "0xnope")
        assert outcome.status is VerificationStatusCode.VERIFICATION_FAILED

    connectors.valid_values.add("0xabc")
    outcome = await verify_quest.execute(USER, GUILD, "0xabc")

    assert outcome.status is VerificationStatusCode.ATTEMPTS_EXHAUSTED
    assert len(connectors.tests) == 3
    stored = repos.assignments.store[str(assignment.assignment_id)]
    assert stored.status is AssignmentStatus.FAILED
    assert await repos.xp.get(USER, GUILD) is None

    after = await verify_quest.execute(USER, GUILD, "0xabc")
    assert after.status is VerificationStatusCode.NO_ACTIVE_QUEST


async def test_single_verification_quest_completes_and_awards_xp(
    verify_quest, assign_quest, create_quest, repos, connectors
):
    quest, assignment = await _wallet_quest(assign_quest, create_quest)
    connectors.valid_values.add("0xabc")

    outcome = await verify_quest.execute(USER, GUILD, " 0xabc ")

    assert outcome.status is VerificationStatusCode.QUEST_COMPLETED
    assert outcome.quest_xp == 200
    assert outcome.total_xp == 200
    stored = repos.assignments.store[str(assignment.assignment_id)]
    assert stored.status is AssignmentStatus.COMPLETED
    assert stored.verification_identifier == "0xabc"
    assert stored.xp_awarded == 200
    assert repos.quests.store[str(quest.quest_id)].total_completions == 1
    xp = await repos.xp.get(USER, GUILD)
    assert (xp.total_xp, xp.quests_completed) == (200, 1)


async def test_tasks_complete_in_order_and_points_add_up(
    verify_quest, assign_quest, create_quest, repos, roles, connectors
):
    quest, _ = await _assigned(
        assign_quest,
        create_quest,
        tasks=[
            TaskSpec(
                title="Get verified",
                points=50,
                verification=NativeCheck(kind=NativeCheckKind.ROLE, role_id="42"),
            ),
            TaskSpec(
                title="Link wallet",
                points=150,
                verification=ConnectorCheck(
                    connector_id=9, identifier_type=IdentifierType.WALLET_ADDRESS
                ),
            ),
        ],
    )
    assert quest.xp_reward == 200

    not_yet = await verify_quest.execute(USER, GUILD)
    assert not_yet.status is VerificationStatusCode.VERIFICATION_FAILED

    roles.grant(USER, "42")
    first = await verify_quest.execute(USER, GUILD)
    assert first.status is VerificationStatusCode.TASK_COMPLETED
    assert first.task.title == "Get verified"
    assert first.next_task.title == "Link wallet"
    assert first.points_awarded == 50
    assert first.total_xp == 50

    with pytest.raises(UserInputError):
        await verify_quest.execute(USER, GUILD)

    connectors.valid_values.add("0xabc")
    second = await verify_quest.execute(USER, GUILD, "0xabc")
    assert second.status is VerificationStatusCode.QUEST_COMPLETED
    assert second.points_awarded == 150
    assert second.total_xp == 200
    assert len(repos.completions.store) == 2


async def test_deleted_quest_expires_the_assignment(
    verify_quest, assign_quest, create_quest, repos
):
    quest, assignment = await _wallet_quest(assign_quest, create_quest)
    del repos.quests.store[str(quest.quest_id)]

    outcome = await verify_quest.execute(USER, GUILD, "0xabc")

    assert outcome.status is VerificationStatusCode.NO_ACTIVE_QUEST
    stored = repos.assignments.store[str(assignment.assignment_id)]
    assert stored.status is AssignmentStatus.EXPIRED
