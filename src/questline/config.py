import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


BOT_TOKEN: str = os.getenv("BOT_TOKEN", "").strip()
BOT_GUILD_ID: Optional[int] = _env_optional_int("BOT_GUILD_ID")

ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "").strip()
CLAUDE_MODEL: str = os.getenv("CLAUDE_MODEL", "claude-3-5-sonnet-20241022").strip()

MCP_URL: str = os.getenv("MCP_URL", "").strip()
MCP_TOKEN: str = os.getenv("MCP_TOKEN", "").strip()

API_ADMIN_TOKEN: str = os.getenv("API_ADMIN_TOKEN", "").strip()
