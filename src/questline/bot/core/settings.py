from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from questline.config import (
    ANTHROPIC_API_KEY,
    API_ADMIN_TOKEN,
    BOT_GUILD_ID,
    BOT_TOKEN,
    CLAUDE_MODEL,
    MCP_TOKEN,
    MCP_URL,
)
from questline.infra.settings import DB_NAME, MONGODB_URI


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the Questline bot and API."""

    bot_token: str
    guild_id: Optional[int]
    mongodb_uri: str
    db_name: str
    anthropic_api_key: str
    claude_model: str
    anthropic_timeout_seconds: float
    mcp_url: str
    mcp_token: str
    mcp_timeout_seconds: float
    quest_api_timeout_seconds: float
    max_verification_attempts: int
    conversation_ttl_minutes: int
    api_admin_token: str
    builder_enabled: bool = True


def load_settings() -> Settings:
    """Construct Settings from environment variables."""
    return Settings(
        bot_token=BOT_TOKEN,
        guild_id=BOT_GUILD_ID,
        mongodb_uri=MONGODB_URI,
        db_name=DB_NAME,
        anthropic_api_key=ANTHROPIC_API_KEY,
        claude_model=CLAUDE_MODEL,
        anthropic_timeout_seconds=_env_float("ANTHROPIC_TIMEOUT_SECONDS", 60.0),
        mcp_url=MCP_URL,
        mcp_token=MCP_TOKEN,
        mcp_timeout_seconds=_env_float("MCP_TIMEOUT_SECONDS", 30.0),
        quest_api_timeout_seconds=_env_float("QUEST_API_TIMEOUT_SECONDS", 10.0),
        max_verification_attempts=_env_int("MAX_VERIFICATION_ATTEMPTS", 10),
        conversation_ttl_minutes=_env_int("CONVERSATION_TTL_MINUTES", 60),
        api_admin_token=API_ADMIN_TOKEN,
        builder_enabled=_env_flag("QUEST_BUILDER_ENABLED", default=True),
    )


__all__ = ["Settings", "load_settings"]
