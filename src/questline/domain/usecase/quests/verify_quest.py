from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from questline.domain.models.AssignmentModel import Assignment, TaskCompletion
from questline.domain.models.QuestModel import Quest, Task
from questline.domain.models.VerificationModel import VerificationResult
from questline.domain.usecase._shared import normalize_identifier
from questline.domain.usecase.errors import UserInputError
from questline.domain.usecase.ports import (
    AssignmentsRepo,
    CompletionsRepo,
    QuestsRepo,
    XpRepo,
)
from questline.verification.dispatcher import VerificationDispatcher

logger = logging.getLogger(__name__)

MAX_VERIFICATION_ATTEMPTS = 10
MIN_IDENTIFIER_LENGTH = 3
ATTEMPTS_EXHAUSTED_REASON = "Maximum verification attempts exceeded"


class VerificationStatusCode(Enum):
    NO_ACTIVE_QUEST = "NO_ACTIVE_QUEST"
    ATTEMPTS_EXHAUSTED = "ATTEMPTS_EXHAUSTED"
    VERIFICATION_FAILED = "VERIFICATION_FAILED"
    TASK_COMPLETED = "TASK_COMPLETED"
    QUEST_COMPLETED = "QUEST_COMPLETED"


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    status: VerificationStatusCode
    quest: Optional[Quest] = None
    task: Optional[Task] = None
    next_task: Optional[Task] = None
    result: Optional[VerificationResult] = None
    attempts_remaining: int = 0
    points_awarded: int = 0
    quest_xp: int = 0
    total_xp: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status in (
            VerificationStatusCode.TASK_COMPLETED,
            VerificationStatusCode.QUEST_COMPLETED,
        )


@dataclass(slots=True)
class VerifyQuestCompletion:
    """Verifies the member's current task and advances their assignment.

    Attempts are counted per assignment and checked before any verifier runs,
    so a member past the cap never triggers another outbound call. Points are
    awarded only by the caller whose completion insert succeeds, and the
    quest-level counters move only with the guarded ``ASSIGNED -> COMPLETED``
    transition.
    """

    quests_repo: QuestsRepo
    assignments_repo: AssignmentsRepo
    completions_repo: CompletionsRepo
    xp_repo: XpRepo
    dispatcher: VerificationDispatcher
    max_attempts: int = MAX_VERIFICATION_ATTEMPTS

    async def execute(
        self, user_id: str, guild_id: str, identifier: Optional[str] = None
    ) -> VerificationOutcome:
        user_id, guild_id = str(user_id), str(guild_id)

        assignment = await self.assignments_repo.get_active(user_id, guild_id)
        if assignment is None:
            return VerificationOutcome(VerificationStatusCode.NO_ACTIVE_QUEST)

        quest = await self.quests_repo.get(guild_id, str(assignment.quest_id))
        if quest is None:
            await self.assignments_repo.expire_for_quest(
                guild_id, str(assignment.quest_id)
            )
            return VerificationOutcome(VerificationStatusCode.NO_ACTIVE_QUEST)

        completed = await self.completions_repo.completed_task_ids(user_id, quest.quest_id)
        task = quest.next_task(completed)
        if task is None:
            # Every task was recorded earlier but the assignment never closed.
            return await self._complete_quest(assignment, quest, None, identifier, 0)

        identifier = normalize_identifier(identifier)
        if task.needs_identifier and (
            identifier is None or len(identifier) < MIN_IDENTIFIER_LENGTH
        ):
            label = task.identifier_type.label if task.identifier_type else "identifier"
            raise UserInputError(
                f"Please provide a valid {label} "
                f"(at least {MIN_IDENTIFIER_LENGTH} characters)."
            )

        attempts = await self.assignments_repo.increment_attempts(assignment.assignment_id)
        if attempts > self.max_attempts:
            await self.assignments_repo.mark_failed(
                assignment.assignment_id, ATTEMPTS_EXHAUSTED_REASON
            )
            logger.info(
                "Assignment failed after exhausting attempts",
                extra={
                    "user_id": user_id,
                    "guild_id": guild_id,
                    "quest_id": str(quest.quest_id),
                    "attempts": attempts,
                },
            )
            return VerificationOutcome(
                VerificationStatusCode.ATTEMPTS_EXHAUSTED, quest=quest, task=task
            )

        result = await self.dispatcher.dispatch(
            user_id, guild_id, task.verification, identifier
        )
        if not result.verified:
            return VerificationOutcome(
                VerificationStatusCode.VERIFICATION_FAILED,
                quest=quest,
                task=task,
                result=result,
                attempts_remaining=max(self.max_attempts - attempts, 0),
            )

        points_awarded = await self._record_task(assignment, task, identifier)
        next_task = quest.next_task(completed | {str(task.task_id)})
        if next_task is not None:
            xp = await self.xp_repo.get(user_id, guild_id)
            return VerificationOutcome(
                VerificationStatusCode.TASK_COMPLETED,
                quest=quest,
                task=task,
                next_task=next_task,
                result=result,
                attempts_remaining=max(self.max_attempts - attempts, 0),
                points_awarded=points_awarded,
                total_xp=xp.total_xp if xp else 0,
            )

        return await self._complete_quest(
            assignment, quest, task, identifier, points_awarded, result
        )

    async def _record_task(
        self, assignment: Assignment, task: Task, identifier: Optional[str]
    ) -> int:
        completion = TaskCompletion(
            user_id=assignment.user_id,
            guild_id=assignment.guild_id,
            quest_id=assignment.quest_id,
            task_id=task.task_id,
            points_awarded=task.points,
            identifier=identifier,
        )
        if not await self.completions_repo.record(completion):
            logger.info(
                "Task already completed, no points awarded",
                extra={"user_id": assignment.user_id, "task_id": str(task.task_id)},
            )
            return 0

        if task.points > 0:
            await self.xp_repo.add_xp(assignment.user_id, assignment.guild_id, task.points)
        logger.info(
            "Task completed",
            extra={
                "user_id": assignment.user_id,
                "guild_id": assignment.guild_id,
                "task_id": str(task.task_id),
                "points": task.points,
            },
        )
        return task.points

    async def _complete_quest(
        self,
        assignment: Assignment,
        quest: Quest,
        task: Optional[Task],
        identifier: Optional[str],
        points_awarded: int,
        result: Optional[VerificationResult] = None,
    ) -> VerificationOutcome:
        transitioned = await self.assignments_repo.mark_completed(
            assignment.assignment_id,
            xp_awarded=quest.total_points,
            identifier=identifier,
        )
        if transitioned:
            await self.quests_repo.increment_completions(
                assignment.guild_id, str(quest.quest_id)
            )
            await self.xp_repo.record_quest_completed(assignment.user_id, assignment.guild_id)
            logger.info(
                "Quest completed",
                extra={
                    "user_id": assignment.user_id,
                    "guild_id": assignment.guild_id,
                    "quest_id": str(quest.quest_id),
                    "xp": quest.total_points,
                },
            )

        xp = await self.xp_repo.get(assignment.user_id, assignment.guild_id)
        return VerificationOutcome(
            VerificationStatusCode.QUEST_COMPLETED,
            quest=quest,
            task=task,
            result=result,
            points_awarded=points_awarded,
            quest_xp=quest.total_points,
            total_xp=xp.total_xp if xp else 0,
        )
