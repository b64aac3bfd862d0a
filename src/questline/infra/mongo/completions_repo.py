from __future__ import annotations

from typing import Any

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from questline.domain.models.AssignmentModel import TaskCompletion
from questline.domain.models.EntityIDModel import QuestID
from questline.infra.mongo._errors import store_errors
from questline.infra.serialization import to_bson


class CompletionsRepoMongo:
    def __init__(self, db: AsyncIOMotorDatabase[Any]) -> None:
        self._collection: AsyncIOMotorCollection[Any] = db["task_completions"]

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            [("user_id", ASCENDING), ("task_id", ASCENDING)],
            name="ux_task_completions_member_task",
            unique=True,
        )
        await self._collection.create_index(
            [("user_id", ASCENDING), ("quest_id", ASCENDING)],
            name="ix_task_completions_member_quest",
        )

    async def record(self, completion: TaskCompletion) -> bool:
        try:
            with store_errors("task completion insert"):
                await self._collection.insert_one(to_bson(completion))
        except DuplicateKeyError:
            return False
        return True

    async def completed_task_ids(self, user_id: str, quest_id: QuestID) -> set[str]:
        with store_errors("task completion lookup"):
            ids = await self._collection.distinct(
                "task_id", {"user_id": str(user_id), "quest_id": str(quest_id)}
            )
        return {str(task_id) for task_id in ids}
