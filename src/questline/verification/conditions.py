"""Rule language used to judge JSON responses from legacy verification endpoints.

A condition names a dot-path into the response, an operator and a comparison
value. Missing path segments resolve to :data:`UNDEFINED`, which is distinct
from an explicit ``null`` in the payload.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional

from questline.domain.models.VerificationModel import SuccessCondition

logger = logging.getLogger(__name__)


class _Undefined:
    _instance: Optional["_Undefined"] = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


def resolve_field(data: Any, path: str) -> Any:
    value: Any = data
    for key in path.split("."):
        if isinstance(value, Mapping) and key in value:
            value = value[key]
        else:
            return UNDEFINED
    return value


def to_number(value: Any) -> Optional[float]:
    """Numeric view of ``value`` or None when it has none."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            number = float(stripped)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def _is_empty_container(value: Any) -> Optional[bool]:
    if isinstance(value, (list, tuple, str, Mapping)):
        return len(value) == 0
    return None


def evaluate_success_condition(data: Any, condition: SuccessCondition) -> bool:
    value = resolve_field(data, condition.field)
    operator = condition.operator

    if operator == "exists":
        return value is not UNDEFINED and value is not None

    if operator == "not_empty":
        empty = _is_empty_container(value)
        if empty is not None:
            return not empty
        return value is not UNDEFINED and value is not None

    actual = to_number(value)
    if actual is None:
        if operator == "=":
            return value == condition.value and type(value) is type(condition.value)
        if operator == "!=":
            return not (
                value == condition.value and type(value) is type(condition.value)
            )
        return False

    expected = to_number(condition.value)
    if expected is None:
        # A number never equals non-numeric text.
        return operator == "!="

    if operator == ">":
        return actual > expected
    if operator == ">=":
        return actual >= expected
    if operator == "<":
        return actual < expected
    if operator == "<=":
        return actual <= expected
    if operator == "=":
        return actual == expected
    if operator == "!=":
        return actual != expected

    logger.warning("Unknown success condition operator", extra={"operator": operator})
    return False
