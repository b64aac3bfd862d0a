from __future__ import annotations

from typing import List, Optional

from questline.api import schemas
from questline.domain.models.AssignmentModel import UserXp
from questline.domain.models.QuestModel import Quest
from questline.domain.models.VerificationModel import (
    ConnectorCheck,
    IdentifierType,
    LegacyCheck,
    NativeCheck,
    NativeCheckKind,
    SuccessCondition,
    VerificationConfig,
)
from questline.domain.usecase.quests import UserProgress


def verification_from_api(body: schemas.Verification) -> VerificationConfig:
    """Build the domain config; raises ValueError on invalid combinations."""
    if isinstance(body, schemas.NativeVerification):
        return NativeCheck(
            kind=NativeCheckKind(body.kind.value),
            threshold=body.threshold,
            operator=body.operator,
            since_days=body.since_days,
            channel_id=body.channel_id,
            role_id=body.role_id,
            role_name=body.role_name,
        )
    if isinstance(body, schemas.ConnectorVerification):
        return ConnectorCheck(
            connector_id=body.connector_id,
            identifier_type=IdentifierType(body.identifier_type.value),
            connector_name=body.connector_name,
            api_key_env_var=body.api_key_env_var,
        )
    return LegacyCheck(
        endpoint=body.endpoint,
        http_method=body.http_method,
        headers=dict(body.headers),
        params=dict(body.params),
        success_condition=SuccessCondition(
            field=body.success_condition.field,
            operator=body.success_condition.operator,
            value=body.success_condition.value,
        ),
        identifier_type=IdentifierType(body.identifier_type.value),
    )


def quest_to_api(quest: Quest) -> schemas.Quest:
    tasks: List[schemas.Task] = [
        schemas.Task(
            task_id=str(task.task_id),
            title=task.title,
            points=task.points,
            description=task.description,
            method=task.verification.method.value,
            summary=task.verification.describe(),
        )
        for task in quest.task_sequence()
    ]
    return schemas.Quest(
        quest_id=str(quest.quest_id),
        guild_id=quest.guild_id,
        name=quest.name,
        description=quest.description,
        xp_reward=quest.total_points,
        user_input_description=quest.user_input_description,
        created_by=quest.created_by,
        active=quest.active,
        total_completions=quest.total_completions,
        tasks=tasks,
        created_at=quest.created_at,
        updated_at=quest.updated_at,
    )


def progress_to_api(progress: UserProgress) -> schemas.Progress:
    current: Optional[schemas.CurrentQuest] = None
    if progress.current is not None:
        task = progress.current.current_task
        current = schemas.CurrentQuest(
            quest_id=str(progress.current.quest.quest_id),
            name=progress.current.quest.name,
            current_task=task.title if task else None,
            tasks_completed=progress.current.tasks_completed,
            attempts=progress.current.attempts,
        )
    return schemas.Progress(
        user_id=progress.user_id,
        guild_id=progress.guild_id,
        total_xp=progress.total_xp,
        quests_completed=progress.quests_completed,
        recent=[
            schemas.CompletedQuest(
                quest_id=str(item.quest_id),
                name=item.name,
                xp_awarded=item.xp_awarded,
                completed_at=item.completed_at,
            )
            for item in progress.recent
        ],
        current=current,
    )


def leaderboard_to_api(entries: List[UserXp]) -> List[schemas.LeaderboardEntry]:
    return [
        schemas.LeaderboardEntry(
            rank=rank,
            user_id=entry.user_id,
            total_xp=entry.total_xp,
            quests_completed=entry.quests_completed,
        )
        for rank, entry in enumerate(entries, start=1)
    ]
