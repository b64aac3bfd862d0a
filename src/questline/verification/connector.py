from __future__ import annotations

import logging
from dataclasses import dataclass

from questline.domain.models.VerificationModel import ConnectorCheck, VerificationResult
from questline.domain.usecase.ports import ConnectorClient
from questline.verification.placeholders import connector_variables

logger = logging.getLogger(__name__)

VALIDATE_MODE = "validate"


@dataclass(slots=True)
class ConnectorVerifier:
    client: ConnectorClient

    async def verify(self, check: ConnectorCheck, identifier: str) -> VerificationResult:
        variables = connector_variables(check.identifier_type, identifier)
        result = await self.client.test(check.connector_id, VALIDATE_MODE, variables)

        logger.info(
            "Connector validation finished",
            extra={
                "connector_id": check.connector_id,
                "status": result.status,
                "is_valid": result.is_valid,
            },
        )
        if result.is_valid:
            return VerificationResult(True, "Your submission was verified.")
        return VerificationResult(
            False, result.error or "The connector did not accept your submission."
        )
