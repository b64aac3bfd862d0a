from __future__ import annotations

from types import SimpleNamespace

import pytest

from questline.domain.usecase.quests import (
    GetLeaderboard,
    GetUserProgress,
    ListGuildQuests,
)
from questline.services.rate_limiter import RateLimiter


@pytest.fixture
def services(repos, assign_quest, verify_quest) -> SimpleNamespace:
    return SimpleNamespace(
        repos=repos,
        rate_limiter=RateLimiter(),
        assign_quest=assign_quest,
        verify_quest=verify_quest,
        user_progress=GetUserProgress(
            quests_repo=repos.quests,
            assignments_repo=repos.assignments,
            completions_repo=repos.completions,
            xp_repo=repos.xp,
        ),
        leaderboard=GetLeaderboard(xp_repo=repos.xp),
        list_quests=ListGuildQuests(quests_repo=repos.quests),
        builder=None,
    )
