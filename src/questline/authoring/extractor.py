"""Pulls structured quest fragments out of free-form builder replies.

Replies may carry fenced blocks in three shapes: ```connector (one connector
definition), ```json or an untagged fence (loose quest fields), and ```quest
(a finished multi-task quest). Fragments that fail validation are dropped so
the field stays unset and the next turn can try again.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from questline.domain.models.ConversationModel import (
    ConnectorDefinition,
    LegacyDraft,
    QuestDraft,
    TaskDraft,
)
from questline.domain.models.QuestModel import MAX_XP_REWARD
from questline.domain.models.VerificationModel import (
    NATIVE_OPERATORS,
    IdentifierType,
    NativeCheck,
    NativeCheckKind,
    SuccessCondition,
)

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```([A-Za-z]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)
_XP_PATTERN = re.compile(r"(?:xp reward[:\s]*)?(\d{1,5})\s*(?:xp|points)\b", re.IGNORECASE)
_ENV_VAR_PATTERN = re.compile(
    r"(?:env var|environment variable|api key)[:\s]*[`\"']?([A-Z][A-Z0-9_]+)[`\"']?",
    re.IGNORECASE,
)
_IDENTIFIER_KEYWORDS: Tuple[Tuple[IdentifierType, Tuple[str, ...]], ...] = (
    (IdentifierType.WALLET_ADDRESS, ("wallet address", "{{walletaddress}}")),
    (IdentifierType.EMAIL, ("email", "{{emailaddress}}")),
    (IdentifierType.TWITTER_HANDLE, ("twitter", "{{twitterhandle}}")),
    (IdentifierType.DISCORD_ID, ("discord id", "{{discordid}}")),
)
_LOOSE_TAGS = ("", "json")


def fenced_blocks(text: str) -> Iterator[Tuple[str, Any]]:
    """Yield ``(tag, decoded JSON)`` for every fenced block that parses."""
    for match in _FENCE.finditer(text):
        tag = match.group(1).lower()
        try:
            yield tag, json.loads(match.group(2))
        except ValueError:
            logger.debug(
                "Skipping unparsable fenced block",
                extra={"tag": tag, "preview": match.group(2)[:100]},
            )


def extract_candidates(reply: str, draft: Optional[QuestDraft] = None) -> QuestDraft:
    result = copy.deepcopy(draft) if draft is not None else QuestDraft()

    for tag, payload in fenced_blocks(reply):
        if not isinstance(payload, dict):
            continue
        if tag == "connector":
            _merge_connector(result, payload)
        elif tag == "quest":
            _merge_quest(result, payload)
        elif tag in _LOOSE_TAGS:
            if isinstance(payload.get("tasks"), list):
                _merge_quest(result, payload)
            else:
                _merge_loose(result, payload)

    _apply_text_fallbacks(reply, result)
    return result


# ---------- Block shapes ----------


def _merge_connector(draft: QuestDraft, payload: Mapping[str, Any]) -> None:
    definition = ConnectorDefinition.from_payload(payload)
    if definition is None:
        return
    draft.connector = definition
    if not draft.name:
        draft.name = definition.name


def _merge_loose(draft: QuestDraft, payload: Mapping[str, Any]) -> None:
    looks_like_connector = (
        payload.get("endpoint")
        and payload.get("method")
        and (payload.get("validationFn") or payload.get("validationPrompt"))
    )
    if looks_like_connector:
        _merge_connector(draft, payload)

    if "endpoint" not in payload:
        name = _text(payload.get("name"))
        if name:
            draft.name = name
        description = _text(payload.get("description"))
        if description:
            draft.description = description

    xp = _xp(_first(payload, "xp_reward", "xpReward", "points"))
    if xp is not None:
        draft.xp_reward = xp

    identifier_type = _identifier_type(
        _first(payload, "verification_type", "verificationType", "identifier_type")
    )
    if identifier_type is not None:
        draft.identifier_type = identifier_type

    env_var = _text(_first(payload, "api_key_env_var", "apiKeyEnvVar"))
    if env_var:
        draft.api_key_env_var = env_var

    user_input = _text(_first(payload, "user_input_description", "userInputDescription"))
    if user_input:
        draft.user_input_description = user_input

    _merge_legacy_fields(draft, payload)


def _merge_legacy_fields(draft: QuestDraft, payload: Mapping[str, Any]) -> None:
    endpoint = _endpoint(_first(payload, "api_endpoint", "apiEndpoint"))
    if endpoint is None and draft.legacy is None:
        return
    legacy = draft.legacy or LegacyDraft(endpoint=endpoint or "")
    if endpoint is not None:
        legacy.endpoint = endpoint

    method = _text(_first(payload, "api_method", "apiMethod"))
    if method:
        legacy.http_method = method.upper()
    headers = _string_map(_first(payload, "api_headers", "apiHeaders"))
    if headers is not None:
        legacy.headers = headers
    params = _first(payload, "api_params", "apiParams")
    if isinstance(params, dict):
        legacy.params = dict(params)
    condition = _success_condition(_first(payload, "success_condition", "successCondition"))
    if condition is not None:
        legacy.success_condition = condition
    draft.legacy = legacy


def _merge_quest(draft: QuestDraft, payload: Mapping[str, Any]) -> None:
    name = _text(payload.get("name"))
    if name:
        draft.name = name
    description = _text(payload.get("description"))
    if description:
        draft.description = description

    # The task list is one fragment: a single bad entry rejects all of it.
    tasks: List[TaskDraft] = []
    for position, raw in enumerate(payload.get("tasks") or []):
        task = _parse_task(raw)
        if task is None or not task.is_valid():
            logger.debug("Dropping quest block tasks, entry %d is invalid", position)
            return
        tasks.append(task)
    if tasks:
        draft.tasks = tasks


def _parse_task(raw: Any) -> Optional[TaskDraft]:
    if not isinstance(raw, dict):
        return None
    title = _text(raw.get("title"))
    points = _points(raw.get("points"))
    verification = raw.get("verification")
    if not title or points is None or not isinstance(verification, dict):
        return None

    task = TaskDraft(
        title=title,
        points=points,
        description=_text(raw.get("description")) or "",
    )
    kind = _text(verification.get("type"))
    if kind == "native":
        task.native = _native_check(verification)
        return task if task.native is not None else None
    if kind == "connector":
        task.connector = ConnectorDefinition.from_payload(verification.get("connector"))
        task.identifier_type = _identifier_type(verification.get("identifier_type"))
        task.api_key_env_var = _text(verification.get("api_key_env_var"))
        return task
    if kind == "legacy":
        endpoint = _endpoint(verification.get("endpoint"))
        if endpoint is None:
            return None
        task.legacy = LegacyDraft(
            endpoint=endpoint,
            http_method=(_text(verification.get("method")) or "GET").upper(),
            headers=_string_map(verification.get("headers")) or {},
            params=dict(verification.get("params") or {}),
            success_condition=(
                _success_condition(verification.get("success_condition"))
                or SuccessCondition()
            ),
        )
        task.identifier_type = (
            _identifier_type(verification.get("identifier_type"))
            or IdentifierType.IDENTIFIER
        )
        return task
    return None


def _native_check(raw: Mapping[str, Any]) -> Optional[NativeCheck]:
    try:
        kind = NativeCheckKind(_first(raw, "check", "kind"))
    except ValueError:
        return None

    operator = _text(raw.get("operator")) or ">="
    if operator not in NATIVE_OPERATORS:
        return None
    threshold = _points(raw.get("threshold"))
    since_days = _points(raw.get("since_days"))
    role_id = raw.get("role_id")
    channel_id = raw.get("channel_id")
    try:
        return NativeCheck(
            kind=kind,
            threshold=1 if threshold is None else threshold,
            operator=operator,
            since_days=since_days or None,
            channel_id=str(channel_id) if channel_id else None,
            role_id=str(role_id) if role_id else None,
            role_name=_text(raw.get("role_name")),
        )
    except ValueError:
        return None


# ---------- Text fallbacks ----------


def _apply_text_fallbacks(reply: str, draft: QuestDraft) -> None:
    if draft.xp_reward is None:
        match = _XP_PATTERN.search(reply)
        if match:
            draft.xp_reward = _xp(match.group(1))

    if draft.identifier_type is None:
        lowered = reply.lower()
        for identifier_type, keywords in _IDENTIFIER_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                draft.identifier_type = identifier_type
                break

    if draft.api_key_env_var is None:
        match = _ENV_VAR_PATTERN.search(reply)
        if match:
            draft.api_key_env_var = match.group(1)


# ---------- Coercion helpers ----------


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value not in (None, ""):
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _points(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, float) and value.is_integer():
        number = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        number = int(value.strip())
    else:
        return None
    if number < 0 or number > MAX_XP_REWARD:
        return None
    return number


def _xp(value: Any) -> Optional[int]:
    number = _points(value)
    return number if number else None


def _identifier_type(value: Any) -> Optional[IdentifierType]:
    try:
        return IdentifierType(value)
    except ValueError:
        return None


def _endpoint(value: Any) -> Optional[str]:
    text = _text(value)
    if text and text.startswith(("http://", "https://")):
        return text
    return None


def _string_map(value: Any) -> Optional[Dict[str, str]]:
    if not isinstance(value, dict):
        return None
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
        return None
    return dict(value)


def _success_condition(value: Any) -> Optional[SuccessCondition]:
    if not isinstance(value, dict):
        return None
    try:
        return SuccessCondition(
            field=str(value.get("field", "balance")),
            operator=str(value.get("operator", ">")),
            value=value.get("value", 0),
        )
    except ValueError:
        return None
