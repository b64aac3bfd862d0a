from questline.verification.conditions import (
    UNDEFINED,
    evaluate_success_condition,
    resolve_field,
)
from questline.verification.connector import ConnectorVerifier
from questline.verification.dispatcher import VerificationDispatcher
from questline.verification.legacy import LegacyVerifier
from questline.verification.native import NativeVerifier

__all__ = [
    "UNDEFINED",
    "ConnectorVerifier",
    "LegacyVerifier",
    "NativeVerifier",
    "VerificationDispatcher",
    "evaluate_success_condition",
    "resolve_field",
]
