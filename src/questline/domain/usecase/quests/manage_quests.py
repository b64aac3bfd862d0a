from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from questline.domain.models.EntityIDModel import QuestID, TaskID
from questline.domain.models.QuestModel import Quest, Task
from questline.domain.models.VerificationModel import VerificationConfig
from questline.domain.usecase._shared import ensure_quest, parse_quest_id
from questline.domain.usecase.ports import AssignmentsRepo, QuestsRepo

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TaskSpec:
    title: str
    points: int
    verification: VerificationConfig
    description: str = ""


@dataclass(slots=True)
class CreateQuest:
    quests_repo: QuestsRepo

    async def execute(
        self,
        *,
        guild_id: str,
        name: str,
        description: str,
        created_by: Optional[str] = None,
        tasks: Sequence[TaskSpec] = (),
        verification: Optional[VerificationConfig] = None,
        xp_reward: int = 0,
        user_input_description: Optional[str] = None,
        active: bool = True,
    ) -> Quest:
        quest_id = QuestID.generate()
        quest = Quest(
            quest_id=quest_id,
            guild_id=str(guild_id),
            name=name.strip(),
            description=description.strip(),
            xp_reward=xp_reward,
            user_input_description=user_input_description,
            created_by=created_by,
            verification=None if tasks else verification,
            tasks=[
                Task(
                    task_id=TaskID.generate(),
                    quest_id=quest_id,
                    title=spec.title.strip(),
                    points=spec.points,
                    verification=spec.verification,
                    description=spec.description,
                    position=position,
                )
                for position, spec in enumerate(tasks)
            ],
            active=active,
        )
        quest.validate_quest()
        await self.quests_repo.insert(quest)
        logger.info(
            "Quest created",
            extra={
                "guild_id": quest.guild_id,
                "quest_id": str(quest.quest_id),
                "tasks": len(quest.tasks),
                "created_by": created_by,
            },
        )
        return quest


@dataclass(slots=True)
class GetQuest:
    quests_repo: QuestsRepo

    async def execute(self, guild_id: str, quest_id: QuestID | str) -> Quest:
        return await ensure_quest(self.quests_repo, guild_id, quest_id)


@dataclass(slots=True)
class ListGuildQuests:
    quests_repo: QuestsRepo

    async def execute(self, guild_id: str, *, include_inactive: bool = False) -> List[Quest]:
        return await self.quests_repo.list_for_guild(
            str(guild_id), include_inactive=include_inactive
        )


@dataclass(slots=True)
class SetQuestActive:
    quests_repo: QuestsRepo

    async def execute(self, guild_id: str, quest_id: QuestID | str, active: bool) -> Quest:
        quest = await ensure_quest(self.quests_repo, guild_id, quest_id)
        await self.quests_repo.set_active(str(guild_id), str(quest.quest_id), active)
        if active:
            quest.activate()
        else:
            quest.deactivate()
        return quest


@dataclass(slots=True)
class DeleteQuest:
    quests_repo: QuestsRepo
    assignments_repo: AssignmentsRepo

    async def execute(self, guild_id: str, quest_id: QuestID | str) -> bool:
        qid = str(parse_quest_id(quest_id))
        deleted = await self.quests_repo.delete(str(guild_id), qid)
        if deleted:
            expired = await self.assignments_repo.expire_for_quest(str(guild_id), qid)
            logger.info(
                "Quest deleted",
                extra={"guild_id": str(guild_id), "quest_id": qid, "expired": expired},
            )
        return deleted
