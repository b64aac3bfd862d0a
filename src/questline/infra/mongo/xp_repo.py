from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from questline.domain.models.AssignmentModel import UserXp
from questline.infra.mongo._errors import store_errors
from questline.infra.serialization import from_bson


class XpRepoMongo:
    """Per-member XP ledger; only ever incremented."""

    def __init__(self, db: AsyncIOMotorDatabase[Any]) -> None:
        self._collection: AsyncIOMotorCollection[Any] = db["user_xp"]

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            [("user_id", ASCENDING), ("guild_id", ASCENDING)],
            name="ux_user_xp_member",
            unique=True,
        )
        await self._collection.create_index(
            [("guild_id", ASCENDING), ("total_xp", DESCENDING)],
            name="ix_user_xp_leaderboard",
        )

    async def add_xp(self, user_id: str, guild_id: str, amount: int) -> UserXp:
        if amount < 0:
            raise ValueError("XP amounts cannot be negative")
        with store_errors("xp award"):
            doc = await self._collection.find_one_and_update(
                {"user_id": str(user_id), "guild_id": str(guild_id)},
                {
                    "$inc": {"total_xp": int(amount)},
                    "$setOnInsert": {"quests_completed": 0, "last_quest_at": None},
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        return from_bson(UserXp, doc)

    async def record_quest_completed(self, user_id: str, guild_id: str) -> UserXp:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        with store_errors("quest completion tally"):
            doc = await self._collection.find_one_and_update(
                {"user_id": str(user_id), "guild_id": str(guild_id)},
                {
                    "$inc": {"quests_completed": 1},
                    "$set": {"last_quest_at": now},
                    "$setOnInsert": {"total_xp": 0},
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        return from_bson(UserXp, doc)

    async def get(self, user_id: str, guild_id: str) -> Optional[UserXp]:
        with store_errors("xp lookup"):
            doc = await self._collection.find_one(
                {"user_id": str(user_id), "guild_id": str(guild_id)}
            )
        return from_bson(UserXp, doc) if doc else None

    async def leaderboard(self, guild_id: str, limit: int = 10) -> List[UserXp]:
        with store_errors("leaderboard"):
            cursor = (
                self._collection.find({"guild_id": str(guild_id), "total_xp": {"$gt": 0}})
                .sort([("total_xp", DESCENDING), ("last_quest_at", ASCENDING)])
                .limit(int(limit))
            )
            docs = await cursor.to_list(length=int(limit))
        return [from_bson(UserXp, doc) for doc in docs]
