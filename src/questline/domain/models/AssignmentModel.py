from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from questline.domain.models.EntityIDModel import AssignmentID, QuestID, TaskID


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AssignmentStatus(Enum):
    ASSIGNED = "ASSIGNED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self is not AssignmentStatus.ASSIGNED


@dataclass
class Assignment:
    assignment_id: AssignmentID
    user_id: str
    guild_id: str
    quest_id: QuestID

    status: AssignmentStatus = AssignmentStatus.ASSIGNED
    attempts: int = 0
    assigned_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    xp_awarded: int = 0
    verification_identifier: Optional[str] = None
    failure_reason: Optional[str] = None

    @classmethod
    def new(cls, user_id: str, guild_id: str, quest_id: QuestID) -> Assignment:
        return cls(
            assignment_id=AssignmentID.generate(),
            user_id=str(user_id),
            guild_id=str(guild_id),
            quest_id=quest_id,
        )

    @property
    def is_active(self) -> bool:
        return self.status is AssignmentStatus.ASSIGNED


@dataclass
class TaskCompletion:
    user_id: str
    guild_id: str
    quest_id: QuestID
    task_id: TaskID
    points_awarded: int = 0
    identifier: Optional[str] = None
    completed_at: datetime = field(default_factory=_utcnow)


@dataclass
class UserXp:
    user_id: str
    guild_id: str
    total_xp: int = 0
    quests_completed: int = 0
    last_quest_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class CompletedQuest:
    """Read model for progress listings."""

    quest_id: QuestID
    name: str
    xp_awarded: int
    completed_at: datetime
