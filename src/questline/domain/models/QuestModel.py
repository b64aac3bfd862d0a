from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from questline.domain.models.EntityIDModel import QuestID, TaskID
from questline.domain.models.VerificationModel import (
    IdentifierType,
    VerificationConfig,
)

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 1000
MAX_XP_REWARD = 10_000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Task:
    task_id: TaskID
    quest_id: QuestID
    title: str
    points: int
    verification: VerificationConfig
    description: str = ""
    position: int = 0

    def validate_task(self) -> None:
        if not self.title.strip():
            raise ValueError("Task title is required.")
        if len(self.title) > 200:
            raise ValueError("Task title must be 200 characters or fewer.")
        if not 0 <= self.points <= MAX_XP_REWARD:
            raise ValueError(f"Task points must be between 0 and {MAX_XP_REWARD}.")

    @property
    def needs_identifier(self) -> bool:
        return self.verification.needs_identifier

    @property
    def identifier_type(self) -> Optional[IdentifierType]:
        return getattr(self.verification, "identifier_type", None)


@dataclass
class Quest:
    # Identity / scope
    quest_id: QuestID
    guild_id: str

    # Metadata
    name: str
    description: str
    xp_reward: int = 0
    user_input_description: Optional[str] = None
    created_by: Optional[str] = None

    # Verification: either an ordered task list or a single quest-level config
    verification: Optional[VerificationConfig] = None
    tasks: List[Task] = field(default_factory=lambda: [])

    # Lifecycle
    active: bool = True
    total_completions: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        self.tasks = sorted(self.tasks, key=lambda task: task.position)
        if self.tasks:
            self.xp_reward = sum(task.points for task in self.tasks)

    # ------- Task Helpers -------

    def task_sequence(self) -> List[Task]:
        """Ordered tasks to complete; a quest without tasks is one implicit task."""
        if self.tasks:
            return list(self.tasks)
        if self.verification is None:
            return []
        return [
            Task(
                task_id=TaskID(f"{TaskID.prefix}{self.quest_id.body}"),
                quest_id=self.quest_id,
                title=self.name,
                points=self.xp_reward,
                verification=self.verification,
                description=self.description,
                position=0,
            )
        ]

    def next_task(self, completed_task_ids: set[str]) -> Optional[Task]:
        for task in self.task_sequence():
            if str(task.task_id) not in completed_task_ids:
                return task
        return None

    @property
    def total_points(self) -> int:
        return sum(task.points for task in self.task_sequence())

    @property
    def identifier_type(self) -> Optional[IdentifierType]:
        for task in self.task_sequence():
            if task.identifier_type is not None:
                return task.identifier_type
        return None

    # ------- Status Helpers -------

    def activate(self) -> None:
        self.active = True
        self.updated_at = _utcnow()

    def deactivate(self) -> None:
        self.active = False
        self.updated_at = _utcnow()

    # ---------- Helpers ----------

    def validate_quest(self) -> None:
        if not self.name.strip():
            raise ValueError("Quest name is required.")
        if len(self.name) > MAX_NAME_LENGTH:
            raise ValueError(f"Quest name must be {MAX_NAME_LENGTH} characters or fewer.")
        if not self.description.strip():
            raise ValueError("Quest description is required.")
        if len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(
                f"Quest description must be {MAX_DESCRIPTION_LENGTH} characters or fewer."
            )
        if not 0 < self.xp_reward <= MAX_XP_REWARD:
            raise ValueError(f"XP reward must be between 1 and {MAX_XP_REWARD}.")
        if not self.tasks and self.verification is None:
            raise ValueError("Quest needs either tasks or a verification config.")

        positions = [task.position for task in self.tasks]
        if len(set(positions)) != len(positions):
            raise ValueError("Task positions must be unique.")
        for task in self.tasks:
            if task.quest_id != self.quest_id:
                raise ValueError(f"Task {task.task_id} belongs to another quest.")
            task.validate_task()
