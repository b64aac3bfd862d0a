from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ActivityKind(Enum):
    MESSAGE = "message"
    REACTION = "reaction"
    POLL = "poll"


@dataclass
class ActivityEvent:
    """A Discord fact credited to ``user_id``.

    For reactions ``user_id`` is the author of the reacted-to message and
    ``actor_id`` the member who reacted.
    """

    kind: ActivityKind
    guild_id: str
    channel_id: str
    message_id: str
    user_id: str
    actor_id: Optional[str] = None
    emoji: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
