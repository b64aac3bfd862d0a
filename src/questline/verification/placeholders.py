from __future__ import annotations

import re
from typing import Any, Dict, Mapping
from urllib.parse import quote

from questline.domain.models.VerificationModel import IdentifierType, variable_name_for

LEGACY_TOKENS = (
    "[USER_IDENTIFIER]",
    "[WALLET_ADDRESS]",
    "[EMAIL]",
    "[TWITTER_HANDLE]",
    "[DISCORD_ID]",
)

_TOKEN_PATTERN = re.compile(
    "|".join(re.escape(token) for token in LEGACY_TOKENS), re.IGNORECASE
)


def substitute_tokens(template: str, identifier: str, *, url_encode: bool = False) -> str:
    """Replace every legacy token in ``template`` with the member's identifier.

    Every token is honoured whatever identifier type the quest declares.
    Unknown bracketed tokens are left untouched.
    """
    replacement = quote(identifier, safe="") if url_encode else identifier
    return _TOKEN_PATTERN.sub(lambda _match: replacement, template)


def substitute_mapping(values: Mapping[str, Any], identifier: str) -> Dict[str, Any]:
    return {
        key: substitute_tokens(value, identifier) if isinstance(value, str) else value
        for key, value in values.items()
    }


def connector_variables(identifier_type: IdentifierType, identifier: str) -> Dict[str, str]:
    """Variables handed to a connector for the ``validate`` test mode."""
    value = identifier.strip()
    if identifier_type is IdentifierType.TWITTER_HANDLE:
        value = value.lstrip("@")
    return {variable_name_for(identifier_type): value}
