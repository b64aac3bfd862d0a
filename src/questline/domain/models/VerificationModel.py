from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

__all__ = [
    "ConnectorCheck",
    "IdentifierType",
    "LegacyCheck",
    "NativeCheck",
    "NativeCheckKind",
    "SuccessCondition",
    "VerificationConfig",
    "VerificationMethod",
    "VerificationResult",
    "placeholder_for",
    "variable_name_for",
]


class VerificationMethod(Enum):
    NATIVE = "native"
    CONNECTOR = "connector"
    LEGACY = "legacy"


class NativeCheckKind(Enum):
    ROLE = "discord_role"
    MESSAGE_COUNT = "discord_message_count"
    REACTION_COUNT = "discord_reaction_count"
    POLL_COUNT = "discord_poll_count"


class IdentifierType(Enum):
    WALLET_ADDRESS = "wallet_address"
    EMAIL = "email"
    TWITTER_HANDLE = "twitter_handle"
    DISCORD_ID = "discord_id"
    IDENTIFIER = "identifier"

    @property
    def label(self) -> str:
        return _IDENTIFIER_LABELS[self]


_IDENTIFIER_LABELS: Dict[IdentifierType, str] = {
    IdentifierType.WALLET_ADDRESS: "wallet address",
    IdentifierType.EMAIL: "email address",
    IdentifierType.TWITTER_HANDLE: "Twitter/X handle",
    IdentifierType.DISCORD_ID: "Discord ID",
    IdentifierType.IDENTIFIER: "identifier",
}

_VARIABLE_NAMES: Dict[IdentifierType, str] = {
    IdentifierType.WALLET_ADDRESS: "walletAddress",
    IdentifierType.EMAIL: "emailAddress",
    IdentifierType.TWITTER_HANDLE: "twitterHandle",
    IdentifierType.DISCORD_ID: "discordId",
    IdentifierType.IDENTIFIER: "identifier",
}


def variable_name_for(identifier_type: IdentifierType) -> str:
    """Name of the connector variable that receives the member's identifier."""
    return _VARIABLE_NAMES[identifier_type]


def placeholder_for(identifier_type: IdentifierType) -> str:
    return "{{" + variable_name_for(identifier_type) + "}}"


NATIVE_OPERATORS = (">", ">=", "=", "<", "<=", "!=")
CONDITION_OPERATORS = (">", ">=", "<", "<=", "=", "!=", "exists", "not_empty")


@dataclass
class SuccessCondition:
    field: str = "balance"
    operator: str = ">"
    value: Any = 0

    def __post_init__(self) -> None:
        if not self.field or not self.field.strip():
            raise ValueError("Success condition field is required")
        if self.operator not in CONDITION_OPERATORS:
            raise ValueError(f"Unsupported success condition operator: {self.operator}")


@dataclass
class NativeCheck:
    kind: NativeCheckKind
    threshold: int = 1
    operator: str = ">="
    since_days: Optional[int] = None
    channel_id: Optional[str] = None
    role_id: Optional[str] = None
    role_name: Optional[str] = None
    method: VerificationMethod = VerificationMethod.NATIVE

    def __post_init__(self) -> None:
        if self.kind is NativeCheckKind.ROLE and not self.role_id:
            raise ValueError("Role checks require a role_id")
        if self.operator not in NATIVE_OPERATORS:
            raise ValueError(f"Unsupported comparison operator: {self.operator}")
        if self.threshold < 0:
            raise ValueError("threshold cannot be negative")
        if self.since_days is not None and self.since_days <= 0:
            raise ValueError("since_days must be positive")

    @property
    def needs_identifier(self) -> bool:
        return False

    def describe(self) -> str:
        time_context = f" in the last {self.since_days} days" if self.since_days else ""
        if self.kind is NativeCheckKind.ROLE:
            return f'Have the "{self.role_name or "required"}" role'
        if self.kind is NativeCheckKind.MESSAGE_COUNT:
            return f"Send {self.operator} {self.threshold} messages{time_context}"
        if self.kind is NativeCheckKind.REACTION_COUNT:
            return (
                f"Receive {self.operator} {self.threshold} reactions on your messages"
                f"{time_context}"
            )
        return f"Create {self.operator} {self.threshold} polls{time_context}"


@dataclass
class ConnectorCheck:
    connector_id: int
    identifier_type: IdentifierType
    connector_name: Optional[str] = None
    api_key_env_var: Optional[str] = None
    method: VerificationMethod = VerificationMethod.CONNECTOR

    def __post_init__(self) -> None:
        if int(self.connector_id) <= 0:
            raise ValueError("connector_id must be a positive integer")

    @property
    def needs_identifier(self) -> bool:
        return True

    @property
    def placeholder(self) -> str:
        return placeholder_for(self.identifier_type)

    def describe(self) -> str:
        return f"Submit your {self.identifier_type.label} with /confirm"


@dataclass
class LegacyCheck:
    endpoint: str
    http_method: str = "GET"
    headers: Dict[str, str] = field(default_factory=lambda: {})
    params: Dict[str, Any] = field(default_factory=lambda: {})
    success_condition: SuccessCondition = field(default_factory=SuccessCondition)
    identifier_type: IdentifierType = IdentifierType.IDENTIFIER
    method: VerificationMethod = VerificationMethod.LEGACY

    def __post_init__(self) -> None:
        if not (
            self.endpoint.startswith("http://") or self.endpoint.startswith("https://")
        ):
            raise ValueError("Legacy endpoint must start with http:// or https://")
        self.http_method = self.http_method.upper()
        self.headers = dict(self.headers)
        self.params = dict(self.params)

    @property
    def needs_identifier(self) -> bool:
        return True

    def describe(self) -> str:
        return f"Submit your {self.identifier_type.label} with /confirm"


VerificationConfig = Union[NativeCheck, ConnectorCheck, LegacyCheck]


@dataclass(frozen=True, slots=True)
class VerificationResult:
    verified: bool
    message: str
    current_value: Optional[Union[int, str]] = None
    required_value: Optional[Union[int, str]] = None
