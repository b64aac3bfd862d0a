from __future__ import annotations

from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING

from questline.domain.models.ConversationModel import AuthoringConversation
from questline.infra.mongo._errors import store_errors
from questline.infra.serialization import from_bson, to_bson


def _key(user_id: str, guild_id: str) -> str:
    return f"{guild_id}:{user_id}"


class ConversationsRepoMongo:
    """Builder conversations, one per (user, guild), reaped by a TTL index."""

    def __init__(self, db: AsyncIOMotorDatabase[Any]) -> None:
        self._collection: AsyncIOMotorCollection[Any] = db["quest_conversations"]

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            [("expires_at", ASCENDING)],
            name="ttl_quest_conversations_expiry",
            expireAfterSeconds=0,
        )

    async def get(self, user_id: str, guild_id: str) -> Optional[AuthoringConversation]:
        with store_errors("conversation lookup"):
            doc = await self._collection.find_one({"_id": _key(user_id, guild_id)})
        return from_bson(AuthoringConversation, doc) if doc else None

    async def upsert(self, conversation: AuthoringConversation) -> None:
        doc = to_bson(conversation)
        doc["_id"] = _key(conversation.user_id, conversation.guild_id)
        with store_errors("conversation save"):
            await self._collection.replace_one({"_id": doc["_id"]}, doc, upsert=True)

    async def delete(self, user_id: str, guild_id: str) -> bool:
        with store_errors("conversation delete"):
            res = await self._collection.delete_one({"_id": _key(user_id, guild_id)})
        return res.deleted_count == 1
