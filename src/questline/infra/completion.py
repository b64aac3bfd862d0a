from __future__ import annotations

import logging
from typing import Mapping, Sequence

import anthropic

from questline.domain.usecase.errors import InfrastructureFault

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 2000


class AnthropicCompletionBackend:
    """Text completion through the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout_seconds: float = 60.0,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout_seconds
        )

    async def complete(
        self, system: str, messages: Sequence[Mapping[str, str]]
    ) -> str:
        try:
            message = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system,
                messages=[
                    {"role": m["role"], "content": m["content"]} for m in messages
                ],
            )
        except anthropic.APIError as exc:
            logger.exception("Completion backend call failed", extra={"model": self.model})
            raise InfrastructureFault("Completion backend unavailable") from exc

        for block in message.content:
            if getattr(block, "type", None) == "text":
                return block.text
        raise InfrastructureFault("Completion backend returned no text")

    async def close(self) -> None:
        await self._client.close()

    def __repr__(self) -> str:
        return f"AnthropicCompletionBackend(model={self.model!r})"
