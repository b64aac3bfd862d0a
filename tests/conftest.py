from __future__ import annotations

import random
from types import SimpleNamespace

import pytest

from fakes import (
    FakeConnectorClient,
    FakeRoleDirectory,
    InMemoryActivity,
    InMemoryAssignmentsRepo,
    InMemoryCompletionsRepo,
    InMemoryConversationsRepo,
    InMemoryQuestsRepo,
    InMemoryXpRepo,
)
from questline.domain.usecase.quests import (
    AssignQuest,
    CreateQuest,
    VerifyQuestCompletion,
)
from questline.verification import (
    ConnectorVerifier,
    LegacyVerifier,
    NativeVerifier,
    VerificationDispatcher,
)


@pytest.fixture
def repos() -> SimpleNamespace:
    return SimpleNamespace(
        quests=InMemoryQuestsRepo(),
        assignments=InMemoryAssignmentsRepo(),
        completions=InMemoryCompletionsRepo(),
        xp=InMemoryXpRepo(),
        conversations=InMemoryConversationsRepo(),
        activity=InMemoryActivity(),
    )


@pytest.fixture
def roles() -> FakeRoleDirectory:
    return FakeRoleDirectory()


@pytest.fixture
def connectors() -> FakeConnectorClient:
    return FakeConnectorClient()


@pytest.fixture
def dispatcher(repos, roles, connectors) -> VerificationDispatcher:
    return VerificationDispatcher(
        native=NativeVerifier(activity=repos.activity, roles=roles),
        connector=ConnectorVerifier(client=connectors),
        legacy=LegacyVerifier(),
    )


@pytest.fixture
def create_quest(repos) -> CreateQuest:
    return CreateQuest(quests_repo=repos.quests)


@pytest.fixture
def assign_quest(repos) -> AssignQuest:
    return AssignQuest(
        quests_repo=repos.quests,
        assignments_repo=repos.assignments,
        xp_repo=repos.xp,
        rng=random.Random(7),
    )


@pytest.fixture
def verify_quest(repos, dispatcher) -> VerifyQuestCompletion:
    return VerifyQuestCompletion(
        quests_repo=repos.quests,
        assignments_repo=repos.assignments,
        completions_repo=repos.completions,
        xp_repo=repos.xp,
        dispatcher=dispatcher,
        max_attempts=3,
    )
