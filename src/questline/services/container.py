"""Construction and lifecycle of the objects shared by the bot and the API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from questline.authoring.builder import QuestBuilder
from questline.bot.core.settings import Settings
from questline.domain.usecase.errors import TransientIntegrationFailure
from questline.domain.usecase.ports import (
    CompletionBackend,
    ConnectorClient,
    RoleDirectory,
)
from questline.domain.usecase.quests import (
    AssignQuest,
    CreateQuest,
    DeleteQuest,
    GetLeaderboard,
    GetUserProgress,
    ListGuildQuests,
    SetQuestActive,
    VerifyQuestCompletion,
)
from questline.infra.completion import AnthropicCompletionBackend
from questline.infra.mcp_client import McpConnectorClient
from questline.infra.mongo.activity_repo import ActivityRepoMongo
from questline.infra.mongo.assignments_repo import AssignmentsRepoMongo
from questline.infra.mongo.completions_repo import CompletionsRepoMongo
from questline.infra.mongo.conversations_repo import ConversationsRepoMongo
from questline.infra.mongo.quests_repo import QuestsRepoMongo
from questline.infra.mongo.xp_repo import XpRepoMongo
from questline.services.rate_limiter import RateLimiter
from questline.verification import (
    ConnectorVerifier,
    LegacyVerifier,
    NativeVerifier,
    VerificationDispatcher,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Repositories:
    quests: QuestsRepoMongo
    assignments: AssignmentsRepoMongo
    completions: CompletionsRepoMongo
    xp: XpRepoMongo
    conversations: ConversationsRepoMongo
    activity: ActivityRepoMongo

    async def ensure_indexes(self) -> None:
        for repo in (
            self.quests,
            self.assignments,
            self.completions,
            self.xp,
            self.conversations,
            self.activity,
        ):
            await repo.ensure_indexes()


def build_repositories(db: AsyncIOMotorDatabase[Any]) -> Repositories:
    return Repositories(
        quests=QuestsRepoMongo(db),
        assignments=AssignmentsRepoMongo(db),
        completions=CompletionsRepoMongo(db),
        xp=XpRepoMongo(db),
        conversations=ConversationsRepoMongo(db),
        activity=ActivityRepoMongo(db),
    )


@dataclass(slots=True)
class ServiceContainer:
    repos: Repositories
    rate_limiter: RateLimiter
    dispatcher: VerificationDispatcher
    assign_quest: AssignQuest
    verify_quest: VerifyQuestCompletion
    user_progress: GetUserProgress
    leaderboard: GetLeaderboard
    create_quest: CreateQuest
    list_quests: ListGuildQuests
    set_quest_active: SetQuestActive
    delete_quest: DeleteQuest
    connectors: ConnectorClient
    builder: Optional[QuestBuilder] = None

    async def start(self) -> None:
        await self.repos.ensure_indexes()
        self.rate_limiter.start()
        if isinstance(self.connectors, McpConnectorClient):
            try:
                await self.connectors.start()
            except TransientIntegrationFailure as exc:
                # The client reconnects on first use.
                logger.warning("Connector service unavailable at startup: %s", exc)
        logger.info(
            "Services started",
            extra={"builder_enabled": self.builder is not None},
        )

    async def stop(self) -> None:
        await self.rate_limiter.stop()
        if isinstance(self.connectors, McpConnectorClient):
            await self.connectors.stop()
        completion = self.builder.completion if self.builder is not None else None
        if isinstance(completion, AnthropicCompletionBackend):
            await completion.close()


def build_container(
    settings: Settings,
    db: AsyncIOMotorDatabase[Any],
    *,
    role_directory: RoleDirectory,
    completion: Optional[CompletionBackend] = None,
    connectors: Optional[ConnectorClient] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> ServiceContainer:
    repos = build_repositories(db)

    if connectors is None:
        connectors = McpConnectorClient(
            settings.mcp_url,
            settings.mcp_token,
            timeout_seconds=settings.mcp_timeout_seconds,
        )
    if completion is None and settings.anthropic_api_key:
        completion = AnthropicCompletionBackend(
            settings.anthropic_api_key,
            settings.claude_model,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )

    dispatcher = VerificationDispatcher(
        native=NativeVerifier(activity=repos.activity, roles=role_directory),
        connector=ConnectorVerifier(client=connectors),
        legacy=LegacyVerifier(timeout_seconds=settings.quest_api_timeout_seconds),
    )
    create_quest = CreateQuest(quests_repo=repos.quests)

    builder: Optional[QuestBuilder] = None
    if completion is not None and settings.builder_enabled:
        builder = QuestBuilder(
            conversations=repos.conversations,
            completion=completion,
            connectors=connectors,
            create_quest=create_quest,
            ttl=timedelta(minutes=settings.conversation_ttl_minutes),
        )
    else:
        logger.info("Quest builder disabled: no completion backend configured")

    return ServiceContainer(
        repos=repos,
        rate_limiter=rate_limiter or RateLimiter(),
        dispatcher=dispatcher,
        assign_quest=AssignQuest(
            quests_repo=repos.quests,
            assignments_repo=repos.assignments,
            xp_repo=repos.xp,
        ),
        verify_quest=VerifyQuestCompletion(
            quests_repo=repos.quests,
            assignments_repo=repos.assignments,
            completions_repo=repos.completions,
            xp_repo=repos.xp,
            dispatcher=dispatcher,
            max_attempts=settings.max_verification_attempts,
        ),
        user_progress=GetUserProgress(
            quests_repo=repos.quests,
            assignments_repo=repos.assignments,
            completions_repo=repos.completions,
            xp_repo=repos.xp,
        ),
        leaderboard=GetLeaderboard(xp_repo=repos.xp),
        create_quest=create_quest,
        list_quests=ListGuildQuests(quests_repo=repos.quests),
        set_quest_active=SetQuestActive(quests_repo=repos.quests),
        delete_quest=DeleteQuest(
            quests_repo=repos.quests, assignments_repo=repos.assignments
        ),
        connectors=connectors,
        builder=builder,
    )
