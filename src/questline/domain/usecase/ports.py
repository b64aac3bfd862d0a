from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from questline.domain.models.ActivityModel import ActivityEvent
from questline.domain.models.AssignmentModel import Assignment, TaskCompletion, UserXp
from questline.domain.models.ConversationModel import (
    AuthoringConversation,
    ConnectorDefinition,
)
from questline.domain.models.EntityIDModel import AssignmentID, QuestID
from questline.domain.models.QuestModel import Quest


# ---------- Stores ----------


class QuestsRepo(Protocol):
    async def get(self, guild_id: str, quest_id: str) -> Optional[Quest]: ...

    async def insert(self, quest: Quest) -> Quest: ...

    async def list_for_guild(
        self, guild_id: str, *, include_inactive: bool = False
    ) -> List[Quest]: ...

    async def set_active(self, guild_id: str, quest_id: str, active: bool) -> bool: ...

    async def delete(self, guild_id: str, quest_id: str) -> bool: ...

    async def increment_completions(self, guild_id: str, quest_id: str) -> None: ...


class AssignmentsRepo(Protocol):
    async def get_active(self, user_id: str, guild_id: str) -> Optional[Assignment]: ...

    async def atomic_assign(self, assignment: Assignment) -> bool:
        """Insert ``assignment``; False when the member already holds an active one."""
        ...

    async def increment_attempts(self, assignment_id: AssignmentID) -> int: ...

    async def mark_failed(self, assignment_id: AssignmentID, reason: str) -> bool: ...

    async def mark_completed(
        self,
        assignment_id: AssignmentID,
        *,
        xp_awarded: int,
        identifier: Optional[str],
    ) -> bool: ...

    async def expire_for_quest(self, guild_id: str, quest_id: str) -> int: ...

    async def completed_quest_ids(self, user_id: str, guild_id: str) -> set[str]: ...

    async def recent_completed(
        self, user_id: str, guild_id: str, limit: int = 10
    ) -> List[Assignment]: ...


class CompletionsRepo(Protocol):
    async def record(self, completion: TaskCompletion) -> bool:
        """Store the completion; False when the task was already completed."""
        ...

    async def completed_task_ids(self, user_id: str, quest_id: QuestID) -> set[str]: ...


class XpRepo(Protocol):
    async def add_xp(self, user_id: str, guild_id: str, amount: int) -> UserXp: ...

    async def record_quest_completed(self, user_id: str, guild_id: str) -> UserXp: ...

    async def get(self, user_id: str, guild_id: str) -> Optional[UserXp]: ...

    async def leaderboard(self, guild_id: str, limit: int = 10) -> List[UserXp]: ...


class ConversationsRepo(Protocol):
    async def get(self, user_id: str, guild_id: str) -> Optional[AuthoringConversation]: ...

    async def upsert(self, conversation: AuthoringConversation) -> None: ...

    async def delete(self, user_id: str, guild_id: str) -> bool: ...


# ---------- Discord-side facts ----------


class ActivitySource(Protocol):
    async def count_messages(
        self,
        user_id: str,
        guild_id: str,
        *,
        channel_id: Optional[str] = None,
        since_days: Optional[int] = None,
    ) -> int: ...

    async def count_reactions_received(
        self,
        user_id: str,
        guild_id: str,
        *,
        channel_id: Optional[str] = None,
        since_days: Optional[int] = None,
    ) -> int: ...

    async def count_polls(
        self,
        user_id: str,
        guild_id: str,
        *,
        channel_id: Optional[str] = None,
        since_days: Optional[int] = None,
    ) -> int: ...


class ActivityLog(Protocol):
    async def record(self, event: ActivityEvent) -> bool: ...

    async def remove_reaction(self, message_id: str, actor_id: str, emoji: str) -> bool: ...


class RoleDirectory(Protocol):
    async def has_role(self, user_id: str, guild_id: str, role_id: str) -> bool: ...


# ---------- Outbound integrations ----------


class CompletionBackend(Protocol):
    async def complete(self, system: str, messages: Sequence[Dict[str, str]]) -> str: ...


@dataclass(frozen=True, slots=True)
class ConnectorRegistration:
    connector_id: int
    name: str


@dataclass(frozen=True, slots=True)
class ConnectorTestResult:
    status: Optional[int]
    is_valid: bool
    data: Any = None
    error: Optional[str] = None


class ConnectorClient(Protocol):
    async def register_or_update(
        self, definition: ConnectorDefinition
    ) -> ConnectorRegistration: ...

    async def test(
        self, connector_id: int, mode: str, variables: Dict[str, str]
    ) -> ConnectorTestResult: ...
