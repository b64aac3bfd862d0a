"""Admin endpoints for managing a guild's quests."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

import questline.api.deps as deps
from questline.api.mappers import quest_to_api, verification_from_api
from questline.api.schemas import Quest, QuestCreate
from questline.domain.usecase import quests as quest_usecases

router = APIRouter(
    prefix="/v1/guilds/{guild_id}/quests",
    tags=["Quests"],
    dependencies=[Depends(deps.require_admin)],
)


@router.post("", response_model=Quest, status_code=201)
async def create_quest(guild_id: str, body: QuestCreate) -> Quest:
    """Create a quest directly, without the conversational builder."""
    try:
        tasks = [
            quest_usecases.TaskSpec(
                title=task.title,
                points=task.points,
                description=task.description,
                verification=verification_from_api(task.verification),
            )
            for task in body.tasks
        ]
        verification = (
            verification_from_api(body.verification) if body.verification else None
        )
        usecase = quest_usecases.CreateQuest(quests_repo=deps.repos.quests)
        quest = await usecase.execute(
            guild_id=guild_id,
            name=body.name,
            description=body.description,
            created_by=body.created_by,
            tasks=tasks,
            verification=verification,
            xp_reward=body.xp_reward,
            user_input_description=body.user_input_description,
            active=body.active,
        )
    except ValueError as err:
        raise HTTPException(status_code=400, detail=str(err)) from err
    return quest_to_api(quest)


@router.get("", response_model=List[Quest])
async def list_quests(guild_id: str, include_inactive: bool = False) -> List[Quest]:
    usecase = quest_usecases.ListGuildQuests(quests_repo=deps.repos.quests)
    quests = await usecase.execute(guild_id, include_inactive=include_inactive)
    return [quest_to_api(quest) for quest in quests]


@router.get("/{quest_id}", response_model=Quest)
async def get_quest(guild_id: str, quest_id: str) -> Quest:
    try:
        usecase = quest_usecases.GetQuest(quests_repo=deps.repos.quests)
        quest = await usecase.execute(guild_id, quest_id)
    except ValueError as err:
        raise HTTPException(status_code=404, detail=str(err)) from err
    return quest_to_api(quest)


@router.post("/{quest_id}:activate", response_model=Quest)
async def activate_quest(guild_id: str, quest_id: str) -> Quest:
    return await _set_active(guild_id, quest_id, True)


@router.post("/{quest_id}:deactivate", response_model=Quest)
async def deactivate_quest(guild_id: str, quest_id: str) -> Quest:
    """Stop assigning the quest; members already on it can still finish."""
    return await _set_active(guild_id, quest_id, False)


@router.delete("/{quest_id}", status_code=204)
async def delete_quest(guild_id: str, quest_id: str) -> Response:
    """Delete a quest and expire any assignments still open on it."""
    try:
        usecase = quest_usecases.DeleteQuest(
            quests_repo=deps.repos.quests,
            assignments_repo=deps.repos.assignments,
        )
        deleted = await usecase.execute(guild_id, quest_id)
    except ValueError as err:
        raise HTTPException(status_code=404, detail=str(err)) from err
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Quest ID does not exist: {quest_id}")
    return Response(status_code=204)


async def _set_active(guild_id: str, quest_id: str, active: bool) -> Quest:
    try:
        usecase = quest_usecases.SetQuestActive(quests_repo=deps.repos.quests)
        quest = await usecase.execute(guild_id, quest_id, active)
    except ValueError as err:
        raise HTTPException(status_code=404, detail=str(err)) from err
    return quest_to_api(quest)
