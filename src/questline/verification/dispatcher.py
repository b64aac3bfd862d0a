from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from questline.domain.models.VerificationModel import (
    ConnectorCheck,
    LegacyCheck,
    NativeCheck,
    VerificationConfig,
    VerificationResult,
)
from questline.domain.usecase.errors import TransientIntegrationFailure
from questline.verification.connector import ConnectorVerifier
from questline.verification.legacy import LegacyVerifier
from questline.verification.native import NativeVerifier

logger = logging.getLogger(__name__)

TRANSIENT_FAILURE_MESSAGE = (
    "We couldn't reach the verification service right now. Please try again in a moment."
)
MISSING_IDENTIFIER_MESSAGE = "This task needs an identifier to verify."


@dataclass(slots=True)
class VerificationDispatcher:
    """Routes a task's verification config to the strategy it was defined with."""

    native: NativeVerifier
    connector: ConnectorVerifier
    legacy: LegacyVerifier

    async def dispatch(
        self,
        user_id: str,
        guild_id: str,
        verification: VerificationConfig,
        identifier: Optional[str],
    ) -> VerificationResult:
        try:
            if isinstance(verification, NativeCheck):
                return await self.native.verify(user_id, guild_id, verification)

            if not identifier:
                return VerificationResult(False, MISSING_IDENTIFIER_MESSAGE)

            if isinstance(verification, ConnectorCheck):
                return await self.connector.verify(verification, identifier)
            if isinstance(verification, LegacyCheck):
                return await self.legacy.verify(verification, identifier)
        except TransientIntegrationFailure as exc:
            logger.warning(
                "Verification call failed transiently",
                extra={
                    "user_id": user_id,
                    "guild_id": guild_id,
                    "method": verification.method.value,
                    "source": exc.source,
                    "reason": str(exc),
                },
            )
            return VerificationResult(False, TRANSIENT_FAILURE_MESSAGE)

        raise TypeError(f"Unsupported verification config: {type(verification).__name__}")
