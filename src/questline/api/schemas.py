from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

# --- Shared Types ---


class NativeKind(str, Enum):
    DISCORD_ROLE = "discord_role"
    DISCORD_MESSAGE_COUNT = "discord_message_count"
    DISCORD_REACTION_COUNT = "discord_reaction_count"
    DISCORD_POLL_COUNT = "discord_poll_count"


class IdentifierKind(str, Enum):
    WALLET_ADDRESS = "wallet_address"
    EMAIL = "email"
    TWITTER_HANDLE = "twitter_handle"
    DISCORD_ID = "discord_id"
    IDENTIFIER = "identifier"


# --- Verification ---


class SuccessConditionIn(BaseModel):
    field: str = "balance"
    operator: str = ">"
    value: Any = 0


class NativeVerification(BaseModel):
    method: Literal["native"] = "native"
    kind: NativeKind
    threshold: int = 1
    operator: str = ">="
    since_days: Optional[int] = None
    channel_id: Optional[str] = None
    role_id: Optional[str] = None
    role_name: Optional[str] = None


class ConnectorVerification(BaseModel):
    method: Literal["connector"] = "connector"
    connector_id: int
    identifier_type: IdentifierKind
    connector_name: Optional[str] = None
    api_key_env_var: Optional[str] = None


class LegacyVerification(BaseModel):
    method: Literal["legacy"] = "legacy"
    endpoint: str
    http_method: str = "GET"
    headers: Dict[str, str] = Field(default_factory=dict)
    params: Dict[str, Any] = Field(default_factory=dict)
    success_condition: SuccessConditionIn = Field(default_factory=SuccessConditionIn)
    identifier_type: IdentifierKind = IdentifierKind.IDENTIFIER


Verification = Annotated[
    Union[NativeVerification, ConnectorVerification, LegacyVerification],
    Field(discriminator="method"),
]


# --- Quests ---


class TaskCreate(BaseModel):
    title: str
    points: int
    description: str = ""
    verification: Verification


class QuestCreate(BaseModel):
    name: str
    description: str
    xp_reward: int = 0
    user_input_description: Optional[str] = None
    created_by: Optional[str] = None
    verification: Optional[Verification] = None
    tasks: List[TaskCreate] = Field(default_factory=list)
    active: bool = True


class Task(BaseModel):
    task_id: str
    title: str
    points: int
    description: str = ""
    method: str
    summary: str


class Quest(BaseModel):
    quest_id: str
    guild_id: str
    name: str
    description: str
    xp_reward: int
    user_input_description: Optional[str] = None
    created_by: Optional[str] = None
    active: bool
    total_completions: int = 0
    tasks: List[Task] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


# --- Progress ---


class CompletedQuest(BaseModel):
    quest_id: str
    name: str
    xp_awarded: int
    completed_at: datetime


class CurrentQuest(BaseModel):
    quest_id: str
    name: str
    current_task: Optional[str] = None
    tasks_completed: int = 0
    attempts: int = 0


class Progress(BaseModel):
    user_id: str
    guild_id: str
    total_xp: int
    quests_completed: int
    recent: List[CompletedQuest] = Field(default_factory=list)
    current: Optional[CurrentQuest] = None


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    total_xp: int
    quests_completed: int
