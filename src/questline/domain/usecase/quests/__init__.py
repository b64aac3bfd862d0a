from questline.domain.usecase.quests.assign_quest import (
    AssignmentOutcome,
    AssignmentStatusCode,
    AssignQuest,
)
from questline.domain.usecase.quests.manage_quests import (
    CreateQuest,
    DeleteQuest,
    GetQuest,
    ListGuildQuests,
    SetQuestActive,
    TaskSpec,
)
from questline.domain.usecase.quests.progress import (
    GetLeaderboard,
    GetUserProgress,
    UserProgress,
)
from questline.domain.usecase.quests.verify_quest import (
    MAX_VERIFICATION_ATTEMPTS,
    VerificationOutcome,
    VerificationStatusCode,
    VerifyQuestCompletion,
)

__all__ = [
    "AssignQuest",
    "AssignmentOutcome",
    "AssignmentStatusCode",
    "VerifyQuestCompletion",
    "VerificationOutcome",
    "VerificationStatusCode",
    "MAX_VERIFICATION_ATTEMPTS",
    "CreateQuest",
    "GetQuest",
    "ListGuildQuests",
    "SetQuestActive",
    "DeleteQuest",
    "TaskSpec",
    "GetUserProgress",
    "GetLeaderboard",
    "UserProgress",
]
