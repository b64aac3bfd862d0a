"""Member-facing text for quest commands."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional, Sequence

from questline.domain.models.AssignmentModel import Assignment, UserXp
from questline.domain.models.QuestModel import Quest, Task
from questline.domain.usecase.quests import UserProgress, VerificationOutcome


def _date(value: datetime) -> str:
    return f"{value:%b} {value.day}"


def _how_to_verify(task: Optional[Task]) -> str:
    if task is None:
        return "Run `/confirm` once you're done."
    identifier_type = task.identifier_type
    if task.needs_identifier and identifier_type is not None:
        return f"Run `/confirm` with your {identifier_type.label}."
    return "Run `/confirm` once you're done, no input needed."


def _task_lines(quest: Quest) -> list[str]:
    lines: list[str] = []
    for index, task in enumerate(quest.task_sequence(), start=1):
        lines.append(f"{index}. **{task.title}** ({task.points} XP): {task.verification.describe()}")
    return lines


def quest_assigned(quest: Quest) -> str:
    tasks = quest.task_sequence()
    parts = [
        f"**Quest Assigned: {quest.name}**",
        "",
        "**Description:**",
        quest.description,
        "",
        f"**Reward:** {quest.total_points} XP",
        "",
    ]
    if len(tasks) > 1:
        parts.append("**Tasks:**")
        parts.extend(_task_lines(quest))
        parts.append("")
    if quest.user_input_description:
        parts.append(f"**What to submit:** {quest.user_input_description}")
    parts.append(_how_to_verify(tasks[0] if tasks else None))
    parts.append("")
    parts.append("Good luck, adventurer!")
    return "\n".join(parts)


def quest_already_assigned(quest: Quest, assignment: Optional[Assignment]) -> str:
    assigned = f" on {_date(assignment.assigned_at)}" if assignment else ""
    tasks = quest.task_sequence()
    return "\n".join(
        [
            "**You Already Have an Active Quest**",
            "",
            f"You were assigned this quest{assigned}:",
            "",
            f"**{quest.name}**",
            quest.description,
            "",
            f"**Reward:** {quest.total_points} XP",
            "",
            "Complete it first. " + _how_to_verify(tasks[0] if tasks else None),
        ]
    )


NO_QUESTS_AVAILABLE = (
    "**No Quests Available**\n\n"
    "There are no quests available right now. Check back later or ask a "
    "moderator to create some quests!"
)


def all_quests_completed(total_xp: int, quest_count: int) -> str:
    return (
        "**Congratulations, Champion!**\n\n"
        f"You've completed all {quest_count} available quests and earned "
        f"{total_xp:,} XP!\n\n"
        "Check back later for new quests."
    )


def quest_completed(outcome: VerificationOutcome) -> str:
    assert outcome.quest is not None
    return (
        f"**Quest Complete: {outcome.quest.name}**\n\n"
        "Congratulations! Your completion has been verified.\n\n"
        f"**XP Earned:** +{outcome.quest_xp} XP\n"
        f"**Total XP:** {outcome.total_xp:,} XP\n\n"
        "Run `/quest` to get your next adventure!"
    )


def task_completed(outcome: VerificationOutcome) -> str:
    assert outcome.task is not None and outcome.next_task is not None
    return (
        f"**Task Complete: {outcome.task.title}** (+{outcome.points_awarded} XP)\n\n"
        f"**Next task:** {outcome.next_task.title}\n"
        f"{outcome.next_task.verification.describe()}\n\n"
        + _how_to_verify(outcome.next_task)
    )


def verification_failed(outcome: VerificationOutcome) -> str:
    name = outcome.quest.name if outcome.quest else "your quest"
    reason = outcome.result.message if outcome.result else None
    lines = [
        "**Verification Failed**",
        "",
        f'We couldn\'t verify your completion of "{name}".',
    ]
    if reason:
        lines.append(f"**Reason:** {reason}")
    if outcome.result and outcome.result.required_value is not None:
        lines.append(
            f"**Progress:** {outcome.result.current_value} / {outcome.result.required_value}"
        )
    lines.append("")
    lines.append(f"Attempts remaining: {outcome.attempts_remaining}")
    lines.append("Need help? Contact a moderator.")
    return "\n".join(lines)


def attempts_exhausted(outcome: VerificationOutcome) -> str:
    name = outcome.quest.name if outcome.quest else "this quest"
    return (
        "**Out of Attempts**\n\n"
        f'You used every verification attempt for "{name}", so it has been '
        "closed. Run `/quest` to get a new one."
    )


NO_ACTIVE_QUEST = "You don't have an active quest. Run `/quest` to get one!"


def progress(data: UserProgress) -> str:
    if data.recent:
        rows = []
        for index, item in enumerate(data.recent):
            prefix = "└─" if index == len(data.recent) - 1 else "├─"
            rows.append(
                f"{prefix} {item.name} (+{item.xp_awarded} XP) - {_date(item.completed_at)}"
            )
        completed = "\n".join(rows)
    else:
        completed = "└─ No quests completed yet"

    if data.current is not None:
        current = data.current
        step = ""
        if current.current_task is not None and len(current.quest.task_sequence()) > 1:
            step = f", next task: {current.current_task.title}"
        current_section = (
            f"**Current Quest:**\n└─ {current.quest.name} "
            f"({current.quest.total_points} XP{step})"
        )
    else:
        current_section = "Run `/quest` to get a new quest!"

    return (
        "**Your Quest Progress**\n\n"
        f"**Total XP:** {data.total_xp:,}\n\n"
        f"**Completed Quests ({data.quests_completed}):**\n"
        f"{completed}\n\n"
        f"{current_section}"
    )


def leaderboard(entries: Sequence[UserXp]) -> str:
    if not entries:
        return "**Leaderboard**\n\nNobody has earned XP yet. Be the first with `/quest`!"
    rows = [
        f"{rank}. <@{entry.user_id}> {entry.total_xp:,} XP ({entry.quests_completed} quests)"
        for rank, entry in enumerate(entries, start=1)
    ]
    return "**Leaderboard**\n\n" + "\n".join(rows)


def quest_debug(quests: Sequence[Quest]) -> str:
    active = sum(1 for quest in quests if quest.active)
    lines = [
        "**Quest Debug Info for this server:**",
        "",
        f"- Total quests: {len(quests)}",
        f"- Active quests: {active}",
        f"- Inactive quests: {len(quests) - active}",
        "",
    ]
    if not quests:
        lines.append(
            "**No quests found.** Mention the bot with \"create a quest\" to build one, "
            "and check the logs if a quest you created is missing."
        )
        return "\n".join(lines)
    for quest in quests:
        marker = "✅" if quest.active else "❌"
        lines.append(f"{marker} **{quest.name}**")
        lines.append(f"   ID: `{quest.quest_id}`")
        lines.append(
            f"   Tasks: {len(quest.task_sequence())}, {quest.total_points} XP, "
            f"completions: {quest.total_completions}"
        )
    return "\n".join(lines)


def rate_limited(command: str, retry_after_seconds: int) -> str:
    minutes = max(1, math.ceil(retry_after_seconds / 60))
    return (
        "**Slow Down!**\n\n"
        f"You've used `/{command}` too many times recently. Please wait "
        f"{minutes} minute(s) before trying again."
    )


SERVICE_APOLOGY = "Something went wrong on our side. Please try again in a moment."
GUILD_ONLY = "This command can only be used in a server."
ADMIN_ONLY = "You need Administrator permission to use this command."

DISCORD_MESSAGE_LIMIT = 2000


def split_message(text: str, limit: int = DISCORD_MESSAGE_LIMIT) -> list[str]:
    """Split ``text`` into chunks under ``limit``, preferring line breaks."""
    chunks: list[str] = []
    remaining = text
    while len(remaining) > limit:
        cut = remaining.rfind("\n", 0, limit)
        if cut < limit // 2:
            cut = remaining.rfind(" ", 0, limit)
        if cut < limit // 2:
            cut = limit
        chunks.append(remaining[:cut].rstrip())
        remaining = remaining[cut:].lstrip()
    if remaining:
        chunks.append(remaining)
    return chunks
