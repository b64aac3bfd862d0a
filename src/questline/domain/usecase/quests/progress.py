from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from questline.domain.models.AssignmentModel import CompletedQuest, UserXp
from questline.domain.models.QuestModel import Quest, Task
from questline.domain.usecase.ports import (
    AssignmentsRepo,
    CompletionsRepo,
    QuestsRepo,
    XpRepo,
)

RECENT_COMPLETIONS_LIMIT = 10
DEFAULT_LEADERBOARD_SIZE = 10


@dataclass(frozen=True, slots=True)
class CurrentQuest:
    quest: Quest
    current_task: Optional[Task]
    tasks_completed: int
    attempts: int


@dataclass(frozen=True, slots=True)
class UserProgress:
    user_id: str
    guild_id: str
    total_xp: int = 0
    quests_completed: int = 0
    recent: List[CompletedQuest] = field(default_factory=list)
    current: Optional[CurrentQuest] = None


@dataclass(slots=True)
class GetUserProgress:
    quests_repo: QuestsRepo
    assignments_repo: AssignmentsRepo
    completions_repo: CompletionsRepo
    xp_repo: XpRepo

    async def execute(self, user_id: str, guild_id: str) -> UserProgress:
        user_id, guild_id = str(user_id), str(guild_id)
        xp = await self.xp_repo.get(user_id, guild_id)

        recent: List[CompletedQuest] = []
        for assignment in await self.assignments_repo.recent_completed(
            user_id, guild_id, RECENT_COMPLETIONS_LIMIT
        ):
            quest = await self.quests_repo.get(guild_id, str(assignment.quest_id))
            recent.append(
                CompletedQuest(
                    quest_id=assignment.quest_id,
                    name=quest.name if quest else str(assignment.quest_id),
                    xp_awarded=assignment.xp_awarded,
                    completed_at=assignment.completed_at or assignment.assigned_at,
                )
            )

        current: Optional[CurrentQuest] = None
        active = await self.assignments_repo.get_active(user_id, guild_id)
        if active is not None:
            quest = await self.quests_repo.get(guild_id, str(active.quest_id))
            if quest is not None:
                done = await self.completions_repo.completed_task_ids(
                    user_id, quest.quest_id
                )
                current = CurrentQuest(
                    quest=quest,
                    current_task=quest.next_task(done),
                    tasks_completed=len(done),
                    attempts=active.attempts,
                )

        return UserProgress(
            user_id=user_id,
            guild_id=guild_id,
            total_xp=xp.total_xp if xp else 0,
            quests_completed=xp.quests_completed if xp else 0,
            recent=recent,
            current=current,
        )


@dataclass(slots=True)
class GetLeaderboard:
    xp_repo: XpRepo

    async def execute(
        self, guild_id: str, limit: int = DEFAULT_LEADERBOARD_SIZE
    ) -> List[UserXp]:
        limit = max(1, min(int(limit), 100))
        return await self.xp_repo.leaderboard(str(guild_id), limit)
