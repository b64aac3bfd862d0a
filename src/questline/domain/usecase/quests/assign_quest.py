from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from questline.domain.models.AssignmentModel import Assignment
from questline.domain.models.QuestModel import Quest
from questline.domain.usecase.errors import InfrastructureFault
from questline.domain.usecase.ports import AssignmentsRepo, QuestsRepo, XpRepo

logger = logging.getLogger(__name__)


class AssignmentStatusCode(Enum):
    ASSIGNED = "ASSIGNED"
    ALREADY_ASSIGNED = "ALREADY_ASSIGNED"
    NO_QUESTS = "NO_QUESTS"
    ALL_COMPLETED = "ALL_COMPLETED"


@dataclass(frozen=True, slots=True)
class AssignmentOutcome:
    status: AssignmentStatusCode
    quest: Optional[Quest] = None
    assignment: Optional[Assignment] = None
    total_xp: int = 0
    quests_completed: int = 0


@dataclass(slots=True)
class AssignQuest:
    quests_repo: QuestsRepo
    assignments_repo: AssignmentsRepo
    xp_repo: XpRepo
    rng: random.Random = field(default_factory=random.SystemRandom)

    async def execute(self, user_id: str, guild_id: str) -> AssignmentOutcome:
        user_id, guild_id = str(user_id), str(guild_id)

        existing = await self.assignments_repo.get_active(user_id, guild_id)
        if existing is not None:
            return await self._already_assigned(existing)

        active_quests = await self.quests_repo.list_for_guild(guild_id)
        if not active_quests:
            return AssignmentOutcome(AssignmentStatusCode.NO_QUESTS)

        completed = await self.assignments_repo.completed_quest_ids(user_id, guild_id)
        candidates = [q for q in active_quests if str(q.quest_id) not in completed]
        if not candidates:
            xp = await self.xp_repo.get(user_id, guild_id)
            return AssignmentOutcome(
                AssignmentStatusCode.ALL_COMPLETED,
                total_xp=xp.total_xp if xp else 0,
                quests_completed=len(completed),
            )

        quest = self.rng.choice(candidates)
        assignment = Assignment.new(user_id, guild_id, quest.quest_id)
        if await self.assignments_repo.atomic_assign(assignment):
            logger.info(
                "Quest assigned",
                extra={
                    "user_id": user_id,
                    "guild_id": guild_id,
                    "quest_id": str(quest.quest_id),
                },
            )
            return AssignmentOutcome(
                AssignmentStatusCode.ASSIGNED, quest=quest, assignment=assignment
            )

        # A concurrent request inserted first; its choice stands.
        winner = await self.assignments_repo.get_active(user_id, guild_id)
        if winner is None:
            raise InfrastructureFault(
                "Assignment insert was rejected but no active assignment exists"
            )
        logger.info(
            "Concurrent assignment detected, returning existing quest",
            extra={"user_id": user_id, "guild_id": guild_id},
        )
        return await self._already_assigned(winner)

    async def _already_assigned(self, assignment: Assignment) -> AssignmentOutcome:
        quest = await self.quests_repo.get(assignment.guild_id, str(assignment.quest_id))
        return AssignmentOutcome(
            AssignmentStatusCode.ALREADY_ASSIGNED, quest=quest, assignment=assignment
        )
