from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, List, Optional

from questline.authoring.extractor import extract_candidates
from questline.authoring.prompts import (
    CANCEL_ACKNOWLEDGEMENT,
    CANCEL_KEYWORDS,
    QUEST_BUILDER_SYSTEM_PROMPT,
    TRIGGER_PHRASES,
)
from questline.domain.models.ConversationModel import (
    CONVERSATION_TTL,
    AuthoringConversation,
    ConnectorDefinition,
    LegacyDraft,
    MessageRole,
    QuestDraft,
    TaskDraft,
)
from questline.domain.models.QuestModel import Quest
from questline.domain.models.VerificationModel import (
    ConnectorCheck,
    IdentifierType,
    LegacyCheck,
    VerificationConfig,
)
from questline.domain.usecase.errors import (
    ConnectorRegistrationError,
    TransientIntegrationFailure,
)
from questline.domain.usecase.ports import (
    CompletionBackend,
    ConnectorClient,
    ConversationsRepo,
)
from questline.domain.usecase.quests.manage_quests import CreateQuest, TaskSpec

logger = logging.getLogger(__name__)

_API_KEY_HEADERS = ("authorization", "x-api-key")


class BuilderState(Enum):
    NO_CONVERSATION = "NO_CONVERSATION"
    GATHERING = "GATHERING"
    COMPLETE = "COMPLETE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True, slots=True)
class BuilderReply:
    state: BuilderState
    text: str
    quest: Optional[Quest] = None


def should_trigger(content: str) -> bool:
    lowered = content.lower()
    return any(phrase in lowered for phrase in TRIGGER_PHRASES)


def is_cancel(content: str) -> bool:
    return content.strip().casefold() in CANCEL_KEYWORDS


def with_api_key_header(
    definition: ConnectorDefinition, api_key_env_var: Optional[str]
) -> ConnectorDefinition:
    """Add a bearer ``{{apiKey}}`` header when a key variable is declared."""
    if not api_key_env_var:
        return definition
    if any(name.lower() in _API_KEY_HEADERS for name in definition.headers):
        return definition
    headers = dict(definition.headers)
    headers["Authorization"] = "Bearer {{apiKey}}"
    return replace(definition, headers=headers)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class QuestBuilder:
    """Multi-turn quest authoring driven by a text-completion backend.

    Each admin turn is appended to the stored transcript, the whole transcript
    is sent to the backend, and fragments found in the reply are merged into
    the draft. Once the draft is complete, declared connectors are registered
    in order and the quest is stored with all of its tasks. A registration
    failure stores nothing and keeps the conversation so the admin can retry.
    """

    conversations: ConversationsRepo
    completion: CompletionBackend
    connectors: ConnectorClient
    create_quest: CreateQuest
    ttl: timedelta = CONVERSATION_TTL
    clock: Callable[[], datetime] = field(default=_utcnow)

    async def conversation_state(self, user_id: str, guild_id: str) -> BuilderState:
        conversation = await self.conversations.get(str(user_id), str(guild_id))
        if conversation is None:
            return BuilderState.NO_CONVERSATION
        if conversation.is_expired(self.clock()):
            await self.conversations.delete(str(user_id), str(guild_id))
            return BuilderState.EXPIRED
        return BuilderState.GATHERING

    async def handle_message(
        self, user_id: str, guild_id: str, channel_id: str, content: str
    ) -> BuilderReply:
        user_id, guild_id, channel_id = str(user_id), str(guild_id), str(channel_id)

        if is_cancel(content):
            await self.conversations.delete(user_id, guild_id)
            logger.info(
                "Quest builder cancelled",
                extra={"user_id": user_id, "guild_id": guild_id},
            )
            return BuilderReply(BuilderState.CANCELLED, CANCEL_ACKNOWLEDGEMENT)

        now = self.clock()
        conversation = await self.conversations.get(user_id, guild_id)
        if conversation is not None and conversation.is_expired(now):
            logger.info(
                "Discarding expired builder conversation",
                extra={"user_id": user_id, "guild_id": guild_id},
            )
            await self.conversations.delete(user_id, guild_id)
            conversation = None
        if conversation is None:
            conversation = AuthoringConversation(
                user_id=user_id,
                guild_id=guild_id,
                channel_id=channel_id,
                created_at=now,
            )

        conversation.channel_id = channel_id
        conversation.add_message(MessageRole.USER, content)
        conversation.touch(self.ttl, now)
        await self.conversations.upsert(conversation)

        reply = await self.completion.complete(
            QUEST_BUILDER_SYSTEM_PROMPT, conversation.transcript()
        )
        conversation.add_message(MessageRole.ASSISTANT, reply)
        conversation.draft = extract_candidates(reply, conversation.draft)

        if not conversation.draft.is_complete():
            conversation.touch(self.ttl, self.clock())
            await self.conversations.upsert(conversation)
            return BuilderReply(BuilderState.GATHERING, reply)

        try:
            quest = await self._persist(conversation.draft, user_id, guild_id)
        except ConnectorRegistrationError as exc:
            logger.error(
                "Connector registration failed, quest not created",
                extra={
                    "user_id": user_id,
                    "guild_id": guild_id,
                    "connector": exc.connector_name,
                    "reason": exc.reason,
                },
            )
            await self.conversations.upsert(conversation)
            return BuilderReply(
                BuilderState.GATHERING,
                f"{reply}\n\nFailed to create the verification connector: "
                f"{exc.reason}. Please try again.",
            )
        except ValueError as exc:
            logger.warning(
                "Builder draft failed quest validation",
                extra={"user_id": user_id, "guild_id": guild_id, "reason": str(exc)},
            )
            await self.conversations.upsert(conversation)
            return BuilderReply(
                BuilderState.GATHERING,
                f"{reply}\n\nThe quest could not be saved: {exc}",
            )

        await self.conversations.delete(user_id, guild_id)
        return BuilderReply(
            BuilderState.COMPLETE,
            f'{reply}\n\n**Quest "{quest.name}" has been created and is now active!** '
            "Members can receive it with `/quest`.",
            quest=quest,
        )

    # ---------- Persistence ----------

    async def _persist(self, draft: QuestDraft, user_id: str, guild_id: str) -> Quest:
        name = draft.name or ""
        description = draft.description or ""

        if draft.tasks:
            specs: List[TaskSpec] = []
            for task in draft.tasks:
                if not task.is_valid():
                    continue
                specs.append(
                    TaskSpec(
                        title=task.title,
                        points=task.points,
                        description=task.description,
                        verification=await self._task_verification(task),
                    )
                )
            return await self.create_quest.execute(
                guild_id=guild_id,
                name=name,
                description=description,
                created_by=user_id,
                tasks=specs,
                user_input_description=draft.user_input_description,
            )

        identifier_type = draft.identifier_type or IdentifierType.IDENTIFIER
        verification: VerificationConfig
        if draft.connector is not None:
            verification = await self._register(
                draft.connector, identifier_type, draft.api_key_env_var
            )
        elif draft.legacy is not None:
            verification = _legacy_check(draft.legacy, identifier_type)
        else:
            raise ValueError("quest has no verification method")

        return await self.create_quest.execute(
            guild_id=guild_id,
            name=name,
            description=description,
            created_by=user_id,
            verification=verification,
            xp_reward=draft.xp_reward or 0,
            user_input_description=draft.user_input_description,
        )

    async def _task_verification(self, task: TaskDraft) -> VerificationConfig:
        if task.native is not None:
            return task.native
        if task.connector is not None:
            if task.identifier_type is None:
                raise ValueError("connector task has no identifier type")
            return await self._register(
                task.connector, task.identifier_type, task.api_key_env_var
            )
        if task.legacy is None:
            raise ValueError("task has no verification method")
        return _legacy_check(task.legacy, task.identifier_type or IdentifierType.IDENTIFIER)

    async def _register(
        self,
        definition: ConnectorDefinition,
        identifier_type: IdentifierType,
        api_key_env_var: Optional[str],
    ) -> ConnectorCheck:
        payload = with_api_key_header(definition, api_key_env_var)
        try:
            registration = await self.connectors.register_or_update(payload)
        except TransientIntegrationFailure as exc:
            raise ConnectorRegistrationError(definition.name, str(exc)) from exc
        logger.info(
            "Connector registered",
            extra={
                "connector_id": registration.connector_id,
                "connector": registration.name,
            },
        )
        return ConnectorCheck(
            connector_id=registration.connector_id,
            identifier_type=identifier_type,
            connector_name=registration.name,
            api_key_env_var=api_key_env_var,
        )


def _legacy_check(draft: LegacyDraft, identifier_type: IdentifierType) -> LegacyCheck:
    return LegacyCheck(
        endpoint=draft.endpoint,
        http_method=draft.http_method,
        headers=dict(draft.headers),
        params=dict(draft.params),
        success_condition=draft.success_condition,
        identifier_type=identifier_type,
    )
