from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode, urlsplit

import aiohttp

from questline.domain.models.VerificationModel import LegacyCheck, VerificationResult
from questline.domain.usecase.errors import TransientIntegrationFailure
from questline.verification.conditions import evaluate_success_condition
from questline.verification.placeholders import substitute_mapping, substitute_tokens

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class LegacyRequest:
    method: str
    url: str
    headers: Dict[str, str]
    json_body: Optional[Dict[str, Any]] = None


def build_request(check: LegacyCheck, identifier: str) -> LegacyRequest:
    url = substitute_tokens(check.endpoint, identifier, url_encode=True)
    params = substitute_mapping(check.params, identifier)
    headers = {"Content-Type": "application/json"}
    headers.update(
        {key: str(value) for key, value in substitute_mapping(check.headers, identifier).items()}
    )

    if check.http_method == "GET":
        if params:
            query = urlencode({key: _query_value(value) for key, value in params.items()})
            url += ("&" if "?" in url else "?") + query
        return LegacyRequest("GET", url, headers)

    return LegacyRequest(check.http_method, url, headers, json_body=params or None)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(slots=True)
class LegacyVerifier:
    """Calls a quest's configured HTTP endpoint and judges the JSON reply."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    session_factory: Callable[..., aiohttp.ClientSession] = field(
        default=aiohttp.ClientSession
    )

    async def verify(self, check: LegacyCheck, identifier: str) -> VerificationResult:
        request = build_request(check, identifier)
        # Identifiers can end up in the URL, so only the host is logged.
        host = urlsplit(request.url).hostname
        logger.info(
            "Calling legacy verification endpoint",
            extra={"host": host, "method": request.method},
        )

        data = await self._fetch_json(request, host)
        verified = evaluate_success_condition(data, check.success_condition)
        if verified:
            return VerificationResult(True, "Your submission was verified.")
        return VerificationResult(
            False,
            "The verification service did not confirm your submission yet.",
        )

    async def _fetch_json(self, request: LegacyRequest, host: Optional[str]) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        try:
            async with self.session_factory(timeout=timeout) as session:
                async with session.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    json=request.json_body,
                ) as resp:
                    if resp.status < 200 or resp.status >= 300:
                        raise TransientIntegrationFailure(
                            f"Verification endpoint returned HTTP {resp.status}",
                            source=host,
                        )
                    return await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise TransientIntegrationFailure(
                "Verification endpoint timed out", source=host
            ) from exc
        except aiohttp.ClientError as exc:
            raise TransientIntegrationFailure(
                f"Verification endpoint unreachable: {exc.__class__.__name__}",
                source=host,
            ) from exc
        except ValueError as exc:
            raise TransientIntegrationFailure(
                "Verification endpoint returned an undecodable body", source=host
            ) from exc
