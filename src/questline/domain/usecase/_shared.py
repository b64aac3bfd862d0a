from __future__ import annotations

from questline.domain.models.EntityIDModel import QuestID
from questline.domain.models.QuestModel import Quest
from questline.domain.usecase.ports import QuestsRepo


def parse_quest_id(raw: QuestID | str) -> QuestID:
    if isinstance(raw, QuestID):
        return raw
    return QuestID.parse(str(raw))


async def ensure_quest(
    quests_repo: QuestsRepo, guild_id: str, quest_id: QuestID | str
) -> Quest:
    quest = await quests_repo.get(str(guild_id), str(parse_quest_id(quest_id)))
    if quest is None:
        raise ValueError(f"Quest ID does not exist: {quest_id}")
    return quest


def normalize_identifier(identifier: str | None) -> str | None:
    """Strip whitespace; an empty identifier counts as absent."""

    if identifier is None:
        return None
    cleaned = identifier.strip()
    return cleaned or None
