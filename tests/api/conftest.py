from __future__ import annotations

from collections.abc import AsyncIterator
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio

from fakes import (
    InMemoryActivity,
    InMemoryAssignmentsRepo,
    InMemoryCompletionsRepo,
    InMemoryConversationsRepo,
    InMemoryQuestsRepo,
    InMemoryXpRepo,
)
from questline.api import deps
from questline.api.main import app

TEST_ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def api_repos(monkeypatch) -> SimpleNamespace:
    repos = SimpleNamespace(
        quests=InMemoryQuestsRepo(),
        assignments=InMemoryAssignmentsRepo(),
        completions=InMemoryCompletionsRepo(),
        xp=InMemoryXpRepo(),
        conversations=InMemoryConversationsRepo(),
        activity=InMemoryActivity(),
    )
    monkeypatch.setattr(deps, "repos", repos)
    monkeypatch.setattr(deps, "ADMIN_TOKEN", TEST_ADMIN_TOKEN)
    return repos


@pytest_asyncio.fixture
async def client(api_repos) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": TEST_ADMIN_TOKEN}
