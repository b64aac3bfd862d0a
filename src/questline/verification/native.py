from __future__ import annotations

import logging
from dataclasses import dataclass

from questline.domain.models.VerificationModel import (
    NativeCheck,
    NativeCheckKind,
    VerificationResult,
)
from questline.domain.usecase.ports import ActivitySource, RoleDirectory

logger = logging.getLogger(__name__)


def compare(current: int, operator: str, threshold: int) -> bool:
    if operator == ">":
        return current > threshold
    if operator == "=":
        return current == threshold
    if operator == "<":
        return current < threshold
    if operator == "<=":
        return current <= threshold
    if operator == "!=":
        return current != threshold
    # ">=" and anything unrecognised
    return current >= threshold


@dataclass(slots=True)
class NativeVerifier:
    """Checks Discord-side facts: role membership and activity counts."""

    activity: ActivitySource
    roles: RoleDirectory

    async def verify(
        self, user_id: str, guild_id: str, check: NativeCheck
    ) -> VerificationResult:
        if check.kind is NativeCheckKind.ROLE:
            return await self._verify_role(user_id, guild_id, check)

        if check.kind is NativeCheckKind.MESSAGE_COUNT:
            count = await self.activity.count_messages(
                user_id,
                guild_id,
                channel_id=check.channel_id,
                since_days=check.since_days,
            )
            return self._judge_count(
                check,
                count,
                achieved=f"You've sent {count} messages",
                scope_channel=True,
            )

        if check.kind is NativeCheckKind.REACTION_COUNT:
            count = await self.activity.count_reactions_received(
                user_id,
                guild_id,
                channel_id=check.channel_id,
                since_days=check.since_days,
            )
            return self._judge_count(
                check, count, achieved=f"Your messages have received {count} reactions"
            )

        count = await self.activity.count_polls(
            user_id,
            guild_id,
            channel_id=check.channel_id,
            since_days=check.since_days,
        )
        return self._judge_count(check, count, achieved=f"You've created {count} polls")

    async def _verify_role(
        self, user_id: str, guild_id: str, check: NativeCheck
    ) -> VerificationResult:
        role_label = check.role_name or check.role_id or "required"
        if not check.role_id:
            return VerificationResult(False, "Role ID not configured for this quest.")

        has_role = await self.roles.has_role(user_id, guild_id, check.role_id)
        if has_role:
            return VerificationResult(
                True,
                f'You have the "{role_label}" role!',
                current_value=role_label,
                required_value=role_label,
            )
        return VerificationResult(
            False,
            f'You need the "{role_label}" role to complete this quest.',
            required_value=role_label,
        )

    @staticmethod
    def _judge_count(
        check: NativeCheck, count: int, *, achieved: str, scope_channel: bool = False
    ) -> VerificationResult:
        context = f" in the last {check.since_days} days" if check.since_days else ""
        if scope_channel and check.channel_id:
            context += " in the specified channel"

        verified = compare(count, check.operator, check.threshold)
        if verified:
            message = f"{achieved}{context}. Quest complete!"
        else:
            message = (
                f"{achieved}{context}. You need {check.operator} {check.threshold} "
                "to complete this quest."
            )
        logger.debug(
            "Native check evaluated",
            extra={"kind": check.kind.value, "count": count, "verified": verified},
        )
        return VerificationResult(
            verified, message, current_value=count, required_value=check.threshold
        )
