from __future__ import annotations

from questline.domain.models.ActivityModel import ActivityEvent, ActivityKind
from questline.domain.models.VerificationModel import (
    ConnectorCheck,
    IdentifierType,
    LegacyCheck,
    NativeCheck,
    NativeCheckKind,
)
from questline.verification.dispatcher import (
    MISSING_IDENTIFIER_MESSAGE,
    TRANSIENT_FAILURE_MESSAGE,
)
from questline.verification.native import compare

GUILD = "g1"
USER = "u1"


def _message(n: int, channel: str = "c1") -> ActivityEvent:
    return ActivityEvent(
        kind=ActivityKind.MESSAGE,
        guild_id=GUILD,
        channel_id=channel,
        message_id=f"m{n}",
        user_id=USER,
    )


async def test_role_check_passes_when_member_has_role(dispatcher, roles):
    roles.grant(USER, "42")
    check = NativeCheck(kind=NativeCheckKind.ROLE, role_id="42", role_name="Verified")

    result = await dispatcher.dispatch(USER, GUILD, check, None)

    assert result.verified is True
    assert "Verified" in result.message
    assert roles.calls == [(USER, GUILD, "42")]


async def test_role_check_fails_without_role(dispatcher):
    check = NativeCheck(kind=NativeCheckKind.ROLE, role_id="42")

    result = await dispatcher.dispatch(USER, GUILD, check, None)

    assert result.verified is False
    assert result.required_value == "42"


async def test_message_count_respects_operator_and_channel(dispatcher, repos):
    for n in range(3):
        await repos.activity.record(_message(n))
    await repos.activity.record(_message(99, channel="other"))

    check = NativeCheck(
        kind=NativeCheckKind.MESSAGE_COUNT, threshold=3, operator=">=", channel_id="c1"
    )
    result = await dispatcher.dispatch(USER, GUILD, check, None)
    assert result.verified is True
    assert result.current_value == 3
    assert "specified channel" in result.message

    stricter = NativeCheck(kind=NativeCheckKind.MESSAGE_COUNT, threshold=5)
    result = await dispatcher.dispatch(USER, GUILD, stricter, None)
    assert result.verified is False
    assert result.current_value == 4


async def test_reaction_and_poll_counts(dispatcher, repos):
    await repos.activity.record(
        ActivityEvent(
            kind=ActivityKind.REACTION,
            guild_id=GUILD,
            channel_id="c1",
            message_id="m1",
            user_id=USER,
            actor_id="someone",
            emoji="👍",
        )
    )
    reactions = NativeCheck(kind=NativeCheckKind.REACTION_COUNT, threshold=1)
    polls = NativeCheck(kind=NativeCheckKind.POLL_COUNT, threshold=1)

    assert (await dispatcher.dispatch(USER, GUILD, reactions, None)).verified is True
    assert (await dispatcher.dispatch(USER, GUILD, polls, None)).verified is False


def test_compare_falls_back_to_at_least():
    assert compare(2, "!=", 3) is True
    assert compare(3, "=", 3) is True
    assert compare(2, "<", 3) is True
    assert compare(3, "~", 3) is True
    assert compare(2, "~", 3) is False


async def test_connector_check_sends_identifier_variable(dispatcher, connectors):
    connectors.valid_values.add("0xabc")
    check = ConnectorCheck(connector_id=7, identifier_type=IdentifierType.WALLET_ADDRESS)

    ok = await dispatcher.dispatch(USER, GUILD, check, "0xabc")
    nope = await dispatcher.dispatch(USER, GUILD, check, "0xdef")

    assert ok.verified is True
    assert nope.verified is False
    assert nope.message == "No matching record found"
    assert connectors.tests[0] == (7, "validate", {"walletAddress": "0xabc"})


async def test_transient_failures_become_failed_results(dispatcher, connectors):
    connectors.fail_tests = True
    check = ConnectorCheck(connector_id=7, identifier_type=IdentifierType.EMAIL)

    result = await dispatcher.dispatch(USER, GUILD, check, "a@b.io")

    assert result.verified is False
    assert result.message == TRANSIENT_FAILURE_MESSAGE


async def test_identifier_methods_without_identifier_fail_without_calling_out(
    dispatcher, connectors
):
    connector = ConnectorCheck(connector_id=7, identifier_type=IdentifierType.EMAIL)
    legacy = LegacyCheck(endpoint="https://api.example.com/[EMAIL]")

    first = await dispatcher.dispatch(USER, GUILD, connector, None)
    second = await dispatcher.dispatch(USER, GUILD, legacy, "")

    assert first.message == MISSING_IDENTIFIER_MESSAGE
    assert second.verified is False
    assert connectors.tests == []
