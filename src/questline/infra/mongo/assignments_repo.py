from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from questline.domain.models.AssignmentModel import Assignment, AssignmentStatus
from questline.domain.models.EntityIDModel import AssignmentID
from questline.domain.usecase.errors import InfrastructureFault
from questline.infra.mongo._errors import store_errors
from questline.infra.serialization import from_bson, to_bson

logger = logging.getLogger(__name__)

ACTIVE = AssignmentStatus.ASSIGNED.value
QUEST_REMOVED_REASON = "Quest was removed"


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AssignmentsRepoMongo:
    """Assignments keyed by assignment id.

    The unique partial index over ``ASSIGNED`` documents is what keeps a member
    to one open assignment per guild; inserts that lose a race surface as
    ``DuplicateKeyError``.
    """

    def __init__(self, db: AsyncIOMotorDatabase[Any]) -> None:
        self._collection: AsyncIOMotorCollection[Any] = db["assignments"]

    async def ensure_indexes(self) -> None:
        await self._collection.create_index(
            [("user_id", ASCENDING), ("guild_id", ASCENDING)],
            name="ux_assignments_active_member",
            unique=True,
            partialFilterExpression={"status": ACTIVE},
        )
        await self._collection.create_index(
            [
                ("user_id", ASCENDING),
                ("guild_id", ASCENDING),
                ("status", ASCENDING),
                ("completed_at", DESCENDING),
            ],
            name="ix_assignments_member_status",
        )
        await self._collection.create_index(
            [("guild_id", ASCENDING), ("quest_id", ASCENDING), ("status", ASCENDING)],
            name="ix_assignments_quest_status",
        )

    async def get_active(self, user_id: str, guild_id: str) -> Optional[Assignment]:
        with store_errors("active assignment lookup"):
            doc = await self._collection.find_one(
                {"user_id": str(user_id), "guild_id": str(guild_id), "status": ACTIVE}
            )
        return from_bson(Assignment, doc) if doc else None

    async def atomic_assign(self, assignment: Assignment) -> bool:
        doc = to_bson(assignment)
        doc["_id"] = doc["assignment_id"]
        try:
            with store_errors("assignment insert"):
                await self._collection.insert_one(doc)
        except DuplicateKeyError:
            logger.debug(
                "Active assignment already exists",
                extra={"user_id": assignment.user_id, "guild_id": assignment.guild_id},
            )
            return False
        return True

    async def increment_attempts(self, assignment_id: AssignmentID) -> int:
        with store_errors("attempt increment"):
            doc = await self._collection.find_one_and_update(
                {"_id": str(assignment_id)},
                {"$inc": {"attempts": 1}},
                projection={"attempts": True},
                return_document=ReturnDocument.AFTER,
            )
        if doc is None:
            raise InfrastructureFault(f"Assignment {assignment_id} disappeared")
        return int(doc["attempts"])

    async def mark_failed(self, assignment_id: AssignmentID, reason: str) -> bool:
        with store_errors("assignment failure"):
            res = await self._collection.update_one(
                {"_id": str(assignment_id), "status": ACTIVE},
                {
                    "$set": {
                        "status": AssignmentStatus.FAILED.value,
                        "failure_reason": reason,
                        "completed_at": _now(),
                    }
                },
            )
        return res.modified_count == 1

    async def mark_completed(
        self,
        assignment_id: AssignmentID,
        *,
        xp_awarded: int,
        identifier: Optional[str],
    ) -> bool:
        with store_errors("assignment completion"):
            res = await self._collection.update_one(
                {"_id": str(assignment_id), "status": ACTIVE},
                {
                    "$set": {
                        "status": AssignmentStatus.COMPLETED.value,
                        "completed_at": _now(),
                        "xp_awarded": int(xp_awarded),
                        "verification_identifier": identifier,
                    }
                },
            )
        return res.modified_count == 1

    async def expire_for_quest(self, guild_id: str, quest_id: str) -> int:
        with store_errors("assignment expiry"):
            res = await self._collection.update_many(
                {"guild_id": str(guild_id), "quest_id": str(quest_id), "status": ACTIVE},
                {
                    "$set": {
                        "status": AssignmentStatus.EXPIRED.value,
                        "failure_reason": QUEST_REMOVED_REASON,
                        "completed_at": _now(),
                    }
                },
            )
        return res.modified_count

    async def completed_quest_ids(self, user_id: str, guild_id: str) -> set[str]:
        with store_errors("completed quest lookup"):
            ids = await self._collection.distinct(
                "quest_id",
                {
                    "user_id": str(user_id),
                    "guild_id": str(guild_id),
                    "status": AssignmentStatus.COMPLETED.value,
                },
            )
        return {str(quest_id) for quest_id in ids}

    async def recent_completed(
        self, user_id: str, guild_id: str, limit: int = 10
    ) -> List[Assignment]:
        with store_errors("recent completions"):
            cursor = (
                self._collection.find(
                    {
                        "user_id": str(user_id),
                        "guild_id": str(guild_id),
                        "status": AssignmentStatus.COMPLETED.value,
                    }
                )
                .sort("completed_at", DESCENDING)
                .limit(int(limit))
            )
            docs = await cursor.to_list(length=int(limit))
        return [from_bson(Assignment, doc) for doc in docs]
