from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from questline.domain.models.VerificationModel import (
    IdentifierType,
    NativeCheck,
    SuccessCondition,
    placeholder_for,
)

CONVERSATION_TTL = timedelta(hours=1)
CONNECTOR_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class ConversationMessage:
    role: MessageRole
    content: str


@dataclass
class ConnectorDefinition:
    """Connector payload registered with the external connector service."""

    name: str
    endpoint: str
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=lambda: {})
    body: Dict[str, Any] = field(default_factory=lambda: {})
    description: Optional[str] = None
    validation_prompt: Optional[str] = None
    validation_fn: Optional[Dict[str, Any]] = None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional[ConnectorDefinition]:
        """Build a definition from a decoded JSON object, or None if it is malformed."""
        if not isinstance(payload, dict):
            return None
        name = payload.get("name")
        endpoint = payload.get("endpoint")
        method = payload.get("method")
        headers = payload.get("headers")
        body = payload.get("body")
        if not isinstance(name, str) or not name.strip():
            return None
        if not isinstance(endpoint, str) or not endpoint.strip():
            return None
        if method not in CONNECTOR_METHODS:
            return None
        if not isinstance(headers, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
        ):
            return None
        if not isinstance(body, dict):
            return None

        validation_fn = payload.get("validationFn", payload.get("validation_fn"))
        validation_prompt = payload.get(
            "validationPrompt", payload.get("validation_prompt")
        )
        description = payload.get("description")
        return cls(
            name=name,
            endpoint=endpoint,
            method=method,
            headers=dict(headers),
            body=dict(body),
            description=description if isinstance(description, str) else None,
            validation_prompt=(
                validation_prompt if isinstance(validation_prompt, str) else None
            ),
            validation_fn=validation_fn if isinstance(validation_fn, dict) else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "endpoint": self.endpoint,
            "method": self.method,
            "headers": dict(self.headers),
            "body": dict(self.body),
        }
        if self.description is not None:
            payload["description"] = self.description
        if self.validation_prompt is not None:
            payload["validationPrompt"] = self.validation_prompt
        if self.validation_fn is not None:
            payload["validationFn"] = self.validation_fn
        return payload

    def uses_placeholder(self, identifier_type: IdentifierType) -> bool:
        rendered = json.dumps(
            [self.endpoint, self.headers, self.body], sort_keys=True, default=str
        )
        return placeholder_for(identifier_type) in rendered


@dataclass
class LegacyDraft:
    endpoint: str
    http_method: str = "GET"
    headers: Dict[str, str] = field(default_factory=lambda: {})
    params: Dict[str, Any] = field(default_factory=lambda: {})
    success_condition: SuccessCondition = field(default_factory=SuccessCondition)


@dataclass
class TaskDraft:
    """One task of a multi-task quest, as proposed by the completion backend."""

    title: str
    points: int
    description: str = ""
    native: Optional[NativeCheck] = None
    connector: Optional[ConnectorDefinition] = None
    legacy: Optional[LegacyDraft] = None
    identifier_type: Optional[IdentifierType] = None
    api_key_env_var: Optional[str] = None

    def is_valid(self) -> bool:
        if not self.title.strip() or self.points < 0:
            return False
        if self.native is not None:
            return self.connector is None and self.legacy is None
        if self.connector is not None:
            return (
                self.legacy is None
                and self.identifier_type is not None
                and self.connector.uses_placeholder(self.identifier_type)
            )
        if self.legacy is not None:
            return True
        return False


@dataclass
class QuestDraft:
    """Partially gathered quest definition carried across builder turns."""

    name: Optional[str] = None
    description: Optional[str] = None
    xp_reward: Optional[int] = None
    identifier_type: Optional[IdentifierType] = None
    api_key_env_var: Optional[str] = None
    user_input_description: Optional[str] = None
    connector: Optional[ConnectorDefinition] = None
    legacy: Optional[LegacyDraft] = None
    tasks: List[TaskDraft] = field(default_factory=lambda: [])

    def is_multi_task(self) -> bool:
        return bool(self.tasks)

    def is_complete(self) -> bool:
        if not self.name or not self.description:
            return False
        if self.tasks:
            return all(task.is_valid() for task in self.tasks)
        if not self.xp_reward or self.identifier_type is None:
            return False
        if self.connector is not None:
            return self.connector.uses_placeholder(self.identifier_type)
        return self.legacy is not None and bool(self.legacy.endpoint)


@dataclass
class AuthoringConversation:
    user_id: str
    guild_id: str
    channel_id: str
    messages: List[ConversationMessage] = field(default_factory=lambda: [])
    draft: QuestDraft = field(default_factory=QuestDraft)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    expires_at: datetime = field(default_factory=lambda: _utcnow() + CONVERSATION_TTL)

    def add_message(self, role: MessageRole, content: str) -> None:
        self.messages.append(ConversationMessage(role=role, content=content))

    def touch(self, ttl: timedelta = CONVERSATION_TTL, now: Optional[datetime] = None) -> None:
        current = now or _utcnow()
        self.updated_at = current
        self.expires_at = current + ttl

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

    def transcript(self) -> List[Dict[str, str]]:
        return [
            {"role": message.role.value, "content": message.content}
            for message in self.messages
        ]
