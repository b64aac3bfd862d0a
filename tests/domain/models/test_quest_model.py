from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from questline.domain.models.ConversationModel import (
    AuthoringConversation,
    ConnectorDefinition,
    MessageRole,
    QuestDraft,
    TaskDraft,
)
from questline.domain.models.EntityIDModel import QuestID, TaskID
from questline.domain.models.QuestModel import Quest, Task
from questline.domain.models.VerificationModel import (
    ConnectorCheck,
    IdentifierType,
    LegacyCheck,
    NativeCheck,
    NativeCheckKind,
)


def _quest(**overrides) -> Quest:
    fields = dict(
        quest_id=QuestID("QUESA1B2C3"),
        guild_id="g1",
        name="Hello",
        description="World",
        xp_reward=10,
        verification=NativeCheck(kind=NativeCheckKind.MESSAGE_COUNT),
    )
    fields.update(overrides)
    return Quest(**fields)


def test_entity_ids_normalise_and_validate():
    assert str(QuestID(" quesa1b2c3 ")) == "QUESA1B2C3"
    assert QuestID.generate().value.startswith("QUES")
    with pytest.raises(ValueError):
        QuestID("TASKA1B2C3")
    with pytest.raises(ValueError):
        QuestID("QUES-nope")


def test_implicit_task_mirrors_quest_verification():
    quest = _quest()
    (task,) = quest.task_sequence()

    assert task.task_id == TaskID("TASKA1B2C3")
    assert task.points == 10
    assert quest.next_task({str(task.task_id)}) is None


def test_tasks_are_ordered_and_define_reward():
    qid = QuestID("QUESA1B2C3")
    check = NativeCheck(kind=NativeCheckKind.POLL_COUNT)
    tasks = [
        Task(TaskID("TASKB1B1B1"), qid, "second", 5, check, position=1),
        Task(TaskID("TASKA1A1A1"), qid, "first", 7, check, position=0),
    ]
    quest = _quest(tasks=tasks, verification=None, xp_reward=1)

    assert [t.title for t in quest.task_sequence()] == ["first", "second"]
    assert quest.xp_reward == 12
    assert quest.next_task({"TASKA1A1A1"}).title == "second"
    quest.validate_quest()


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": " "},
        {"name": "x" * 101},
        {"description": ""},
        {"xp_reward": 0},
        {"xp_reward": 10_001},
        {"verification": None},
    ],
)
def test_validate_quest_rejects(overrides):
    with pytest.raises(ValueError):
        _quest(**overrides).validate_quest()


def test_verification_configs_validate_their_fields():
    with pytest.raises(ValueError):
        NativeCheck(kind=NativeCheckKind.ROLE)
    with pytest.raises(ValueError):
        NativeCheck(kind=NativeCheckKind.MESSAGE_COUNT, operator="~")
    with pytest.raises(ValueError):
        ConnectorCheck(connector_id=0, identifier_type=IdentifierType.EMAIL)
    with pytest.raises(ValueError):
        LegacyCheck(endpoint="ftp://example.com")
    assert LegacyCheck(endpoint="https://x.io", http_method="post").http_method == "POST"


def test_identifier_type_comes_from_first_identifier_task():
    qid = QuestID("QUESA1B2C3")
    tasks = [
        Task(TaskID("TASKA1A1A1"), qid, "role", 1, NativeCheck(NativeCheckKind.ROLE, role_id="1")),
        Task(
            TaskID("TASKB1B1B1"),
            qid,
            "wallet",
            1,
            ConnectorCheck(connector_id=3, identifier_type=IdentifierType.WALLET_ADDRESS),
            position=1,
        ),
    ]
    quest = _quest(tasks=tasks, verification=None)
    assert quest.identifier_type is IdentifierType.WALLET_ADDRESS
    assert quest.task_sequence()[0].needs_identifier is False


def _connector(endpoint: str) -> ConnectorDefinition:
    return ConnectorDefinition(name="c", endpoint=endpoint)


def test_draft_completeness_rules():
    draft = QuestDraft(name="n", description="d", xp_reward=10)
    assert draft.is_complete() is False

    draft.identifier_type = IdentifierType.WALLET_ADDRESS
    draft.connector = _connector("https://x.io/{{emailAddress}}")
    assert draft.is_complete() is False

    draft.connector = _connector("https://x.io/{{walletAddress}}")
    assert draft.is_complete() is True


def test_task_draft_requires_matching_placeholder():
    task = TaskDraft(
        title="t",
        points=1,
        connector=_connector("https://x.io/{{twitterHandle}}"),
        identifier_type=IdentifierType.TWITTER_HANDLE,
    )
    assert task.is_valid() is True
    task.identifier_type = IdentifierType.EMAIL
    assert task.is_valid() is False


def test_conversation_expiry_and_transcript():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    conversation = AuthoringConversation(user_id="u", guild_id="g", channel_id="c")
    conversation.touch(timedelta(minutes=30), start)
    conversation.add_message(MessageRole.USER, "create a quest")

    assert conversation.is_expired(start + timedelta(minutes=29)) is False
    assert conversation.is_expired(start + timedelta(minutes=30)) is True
    assert conversation.transcript() == [{"role": "user", "content": "create a quest"}]
