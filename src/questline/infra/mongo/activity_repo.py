from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from questline.domain.models.ActivityModel import ActivityEvent, ActivityKind
from questline.infra.mongo._errors import store_errors
from questline.infra.serialization import to_bson


class ActivityRepoMongo:
    """Stores message, reaction and poll facts and answers count queries."""

    def __init__(self, db: AsyncIOMotorDatabase[Any]) -> None:
        self._collection: AsyncIOMotorCollection[Any] = db["activity_events"]

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            [
                ("guild_id", ASCENDING),
                ("user_id", ASCENDING),
                ("kind", ASCENDING),
                ("created_at", DESCENDING),
            ],
            name="ix_activity_member_kind",
        )
        await self._collection.create_index(
            [
                ("kind", ASCENDING),
                ("message_id", ASCENDING),
                ("actor_id", ASCENDING),
                ("emoji", ASCENDING),
            ],
            name="ux_activity_event",
            unique=True,
        )

    async def record(self, event: ActivityEvent) -> bool:
        try:
            with store_errors("activity insert"):
                await self._collection.insert_one(to_bson(event))
        except DuplicateKeyError:
            return False
        return True

    async def remove_reaction(
        self, message_id: str, actor_id: str, emoji: str
    ) -> bool:
        with store_errors("reaction removal"):
            res = await self._collection.delete_one(
                {
                    "kind": ActivityKind.REACTION.value,
                    "message_id": str(message_id),
                    "actor_id": str(actor_id),
                    "emoji": emoji,
                }
            )
        return res.deleted_count == 1

    async def count_messages(
        self,
        user_id: str,
        guild_id: str,
        *,
        channel_id: Optional[str] = None,
        since_days: Optional[int] = None,
    ) -> int:
        return await self._count(ActivityKind.MESSAGE, user_id, guild_id, channel_id, since_days)

    async def count_reactions_received(
        self,
        user_id: str,
        guild_id: str,
        *,
        channel_id: Optional[str] = None,
        since_days: Optional[int] = None,
    ) -> int:
        return await self._count(ActivityKind.REACTION, user_id, guild_id, channel_id, since_days)

    async def count_polls(
        self,
        user_id: str,
        guild_id: str,
        *,
        channel_id: Optional[str] = None,
        since_days: Optional[int] = None,
    ) -> int:
        return await self._count(ActivityKind.POLL, user_id, guild_id, channel_id, since_days)

    async def _count(
        self,
        kind: ActivityKind,
        user_id: str,
        guild_id: str,
        channel_id: Optional[str],
        since_days: Optional[int],
    ) -> int:
        query: dict[str, Any] = {
            "kind": kind.value,
            "user_id": str(user_id),
            "guild_id": str(guild_id),
        }
        if channel_id:
            query["channel_id"] = str(channel_id)
        if since_days:
            since = datetime.now(timezone.utc) - timedelta(days=since_days)
            query["created_at"] = {"$gte": since.replace(tzinfo=None)}
        with store_errors("activity count"):
            return await self._collection.count_documents(query)
