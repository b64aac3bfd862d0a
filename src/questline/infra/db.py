from __future__ import annotations

import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from questline.infra.settings import (
    DB_NAME,
    MONGO_APPNAME,
    MONGO_OP_TIMEOUT_MS,
    MONGO_SERVER_SELECTION_TIMEOUT_MS,
    MONGODB_URI,
)

logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient[Any]] = None


def get_client() -> AsyncIOMotorClient[Any]:
    """Return a cached AsyncIOMotorClient (lazy init)."""
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(
            MONGODB_URI,
            appname=MONGO_APPNAME,
            serverSelectionTimeoutMS=MONGO_SERVER_SELECTION_TIMEOUT_MS,
            socketTimeoutMS=MONGO_OP_TIMEOUT_MS,
            connectTimeoutMS=MONGO_OP_TIMEOUT_MS,
            uuidRepresentation="standard",
            tz_aware=True,
        )
    return _client


def get_db(name: Optional[str] = None) -> AsyncIOMotorDatabase[Any]:
    return get_client()[name or DB_NAME]


async def ping() -> bool:
    try:
        await get_client().admin.command("ping")
        return True
    except PyMongoError as exc:
        logger.warning("Mongo ping failed", extra={"error": str(exc)})
        return False


async def close_client() -> None:
    """Close the cached client (useful for app shutdown / tests)."""
    global _client
    if _client is not None:
        _client.close()
        _client = None
