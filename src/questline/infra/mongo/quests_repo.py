from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from questline.domain.models.QuestModel import Quest
from questline.infra.mongo._errors import store_errors
from questline.infra.serialization import from_bson, to_bson


class QuestsRepoMongo:
    def __init__(self, db: AsyncIOMotorDatabase[Any]) -> None:
        self._collection: AsyncIOMotorCollection[Any] = db["quests"]

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            [("guild_id", ASCENDING), ("active", ASCENDING), ("created_at", DESCENDING)],
            name="ix_quests_guild_active",
        )

    async def get(self, guild_id: str, quest_id: str) -> Optional[Quest]:
        with store_errors("quest lookup"):
            doc = await self._collection.find_one(
                {"_id": str(quest_id), "guild_id": str(guild_id)}
            )
        return from_bson(Quest, doc) if doc else None

    async def insert(self, quest: Quest) -> Quest:
        doc = to_bson(quest)
        doc["_id"] = doc["quest_id"]
        with store_errors("quest insert"):
            await self._collection.insert_one(doc)
        return quest

    async def list_for_guild(
        self, guild_id: str, *, include_inactive: bool = False
    ) -> List[Quest]:
        query: dict[str, Any] = {"guild_id": str(guild_id)}
        if not include_inactive:
            query["active"] = True
        with store_errors("quest listing"):
            cursor = self._collection.find(query).sort("created_at", DESCENDING)
            docs = await cursor.to_list(length=None)
        return [from_bson(Quest, doc) for doc in docs]

    async def set_active(self, guild_id: str, quest_id: str, active: bool) -> bool:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        with store_errors("quest status update"):
            res = await self._collection.update_one(
                {"_id": str(quest_id), "guild_id": str(guild_id)},
                {"$set": {"active": bool(active), "updated_at": now}},
            )
        return res.matched_count == 1

    async def delete(self, guild_id: str, quest_id: str) -> bool:
        with store_errors("quest delete"):
            res = await self._collection.delete_one(
                {"_id": str(quest_id), "guild_id": str(guild_id)}
            )
        return res.deleted_count == 1

    async def increment_completions(self, guild_id: str, quest_id: str) -> None:
        with store_errors("quest completion counter"):
            await self._collection.update_one(
                {"_id": str(quest_id), "guild_id": str(guild_id)},
                {"$inc": {"total_completions": 1}},
            )
