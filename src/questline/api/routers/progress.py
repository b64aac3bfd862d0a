"""Read-only member progress and leaderboard endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Query

import questline.api.deps as deps
from questline.api.mappers import leaderboard_to_api, progress_to_api
from questline.api.schemas import LeaderboardEntry, Progress
from questline.domain.usecase import quests as quest_usecases

router = APIRouter(prefix="/v1/guilds/{guild_id}", tags=["Progress"])


@router.get("/users/{user_id}/progress", response_model=Progress)
async def get_progress(guild_id: str, user_id: str) -> Progress:
    usecase = quest_usecases.GetUserProgress(
        quests_repo=deps.repos.quests,
        assignments_repo=deps.repos.assignments,
        completions_repo=deps.repos.completions,
        xp_repo=deps.repos.xp,
    )
    return progress_to_api(await usecase.execute(user_id, guild_id))


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    guild_id: str, limit: int = Query(default=10, ge=1, le=100)
) -> List[LeaderboardEntry]:
    usecase = quest_usecases.GetLeaderboard(xp_repo=deps.repos.xp)
    return leaderboard_to_api(await usecase.execute(guild_id, limit))
