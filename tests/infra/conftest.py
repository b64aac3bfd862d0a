# tests/infra/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from typing import Any

import pytest
import pytest_asyncio
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from questline.services.container import Repositories, build_repositories

TEST_DB_NAME = "questline_test"


@pytest.fixture(scope="session")
def mongo_uri() -> Iterator[str]:
    """Start MongoDB in a container once per session; skip when Docker is absent."""
    try:
        from testcontainers.mongodb import MongoDbContainer

        container = MongoDbContainer("mongo:7.0")
        container.start()
    except Exception as exc:  # docker daemon missing or image pull failed
        pytest.skip(f"MongoDB container unavailable: {exc}")
    try:
        yield container.get_connection_url()
    finally:
        container.stop()


@pytest_asyncio.fixture
async def mongo_db(mongo_uri: str) -> AsyncIterator[AsyncIOMotorDatabase[Any]]:
    # A client per test keeps Motor bound to the running loop.
    client: AsyncIOMotorClient[Any] = AsyncIOMotorClient(
        mongo_uri, tz_aware=True, serverSelectionTimeoutMS=5000
    )
    await client.drop_database(TEST_DB_NAME)
    try:
        yield client[TEST_DB_NAME]
    finally:
        await client.drop_database(TEST_DB_NAME)
        client.close()


@pytest_asyncio.fixture
async def mongo_repos(mongo_db) -> Repositories:
    repos = build_repositories(mongo_db)
    await repos.ensure_indexes()
    return repos
