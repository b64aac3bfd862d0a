"""Connector service client speaking MCP over SSE."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import AsyncExitStack
from typing import Any, Dict, Mapping, Optional

from mcp import ClientSession
from mcp.client.sse import sse_client

from questline.domain.models.ConversationModel import ConnectorDefinition
from questline.domain.usecase.errors import (
    ConnectorRegistrationError,
    TransientIntegrationFailure,
)
from questline.domain.usecase.ports import ConnectorRegistration, ConnectorTestResult

logger = logging.getLogger(__name__)

REGISTER_TOOL = "createOrUpdateConnector"
TEST_TOOL = "testConnector"


class McpConnectorClient:
    """Registers and exercises connectors through the connector MCP server.

    The session is opened lazily on first use and kept for the process
    lifetime. A failed call drops the session so the next call reconnects.
    """

    def __init__(self, url: str, token: str, *, timeout_seconds: float = 30.0) -> None:
        self._url = url
        self._token = token
        self._timeout = timeout_seconds
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[ClientSession] = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def start(self) -> None:
        await self._ensure_session()

    async def stop(self) -> None:
        async with self._lock:
            await self._close_locked()

    async def register_or_update(
        self, definition: ConnectorDefinition
    ) -> ConnectorRegistration:
        try:
            payload = await self._call(REGISTER_TOOL, definition.to_payload())
        except TransientIntegrationFailure as exc:
            raise ConnectorRegistrationError(definition.name, str(exc)) from exc

        if payload.get("success") is False or payload.get("error"):
            reason = str(payload.get("error") or "connector service rejected the definition")
            raise ConnectorRegistrationError(definition.name, reason)

        connector = payload.get("connector") if isinstance(payload.get("connector"), dict) else payload
        try:
            connector_id = int(connector.get("id", 0))
        except (TypeError, ValueError):
            connector_id = 0
        if connector_id <= 0:
            raise ConnectorRegistrationError(definition.name, "no connector id returned")

        name = str(connector.get("name") or definition.name)
        logger.info(
            "Connector created or updated",
            extra={"connector_id": connector_id, "connector": name},
        )
        return ConnectorRegistration(connector_id=connector_id, name=name)

    async def test(
        self, connector_id: int, mode: str, variables: Mapping[str, str]
    ) -> ConnectorTestResult:
        payload = await self._call(
            TEST_TOOL,
            {"id": connector_id, "mode": mode, "variables": dict(variables)},
        )
        status = payload.get("status")
        return ConnectorTestResult(
            status=int(status) if isinstance(status, (int, float)) else None,
            is_valid=payload.get("isValid") is True,
            data=payload.get("data"),
            error=payload.get("error") if isinstance(payload.get("error"), str) else None,
        )

    # ---------- Session handling ----------

    async def _call(self, tool: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        session = await self._ensure_session()
        try:
            result = await asyncio.wait_for(
                session.call_tool(tool, arguments=arguments), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            await self._reset()
            raise TransientIntegrationFailure(
                f"Connector service timed out after {self._timeout}s", source=tool
            ) from exc
        except Exception as exc:
            # Transport, protocol and task-group errors all mean the session is gone.
            logger.warning("Connector service call failed", exc_info=exc)
            await self._reset()
            raise TransientIntegrationFailure(
                f"Connector service call failed: {exc}", source=tool
            ) from exc

        if getattr(result, "isError", False):
            text = _first_text(result) or "tool reported an error"
            raise TransientIntegrationFailure(text, source=tool)

        text = _first_text(result)
        if text is None:
            raise TransientIntegrationFailure("Empty response from connector service", source=tool)
        try:
            payload = json.loads(text)
        except ValueError as exc:
            raise TransientIntegrationFailure(
                "Connector service returned non-JSON content", source=tool
            ) from exc
        if not isinstance(payload, dict):
            raise TransientIntegrationFailure(
                "Connector service returned an unexpected payload", source=tool
            )
        return payload

    async def _ensure_session(self) -> ClientSession:
        async with self._lock:
            if self._session is not None:
                return self._session
            if not self._url:
                raise TransientIntegrationFailure("MCP_URL is not configured", source="mcp")

            stack = AsyncExitStack()
            try:
                read, write = await stack.enter_async_context(
                    sse_client(self._url, headers={"Authorization": f"Bearer {self._token}"})
                )
                session = await stack.enter_async_context(ClientSession(read, write))
                await asyncio.wait_for(session.initialize(), timeout=self._timeout)
            except Exception as exc:
                await _close_quietly(stack)
                logger.warning("Could not connect to connector service", exc_info=exc)
                raise TransientIntegrationFailure(
                    f"Could not connect to connector service: {exc}", source="mcp"
                ) from exc

            self._stack = stack
            self._session = session
            logger.info("Connected to connector service")
            return session

    async def _reset(self) -> None:
        async with self._lock:
            await self._close_locked()

    async def _close_locked(self) -> None:
        stack, self._stack, self._session = self._stack, None, None
        if stack is not None:
            await _close_quietly(stack)


async def _close_quietly(stack: AsyncExitStack) -> None:
    # The SSE task group may belong to another task; its teardown error must
    # not replace the failure that triggered the close.
    try:
        await stack.aclose()
    except Exception as exc:
        logger.warning("Error while closing connector service session", exc_info=exc)


def _first_text(result: Any) -> Optional[str]:
    for item in getattr(result, "content", None) or []:
        text = getattr(item, "text", None)
        if isinstance(text, str):
            return text
    return None
