from __future__ import annotations


class QuestlineError(Exception):
    """Base class for errors raised by the quest engine."""


class UserInputError(QuestlineError):
    """The member supplied something we cannot act on; nothing was changed."""


class TransientIntegrationFailure(QuestlineError):
    """An outbound call timed out, failed to connect or returned garbage."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class InfrastructureFault(QuestlineError):
    """The store or the completion backend is unavailable."""


class ConnectorRegistrationError(InfrastructureFault):
    def __init__(self, connector_name: str, reason: str) -> None:
        super().__init__(f"Failed to register connector {connector_name!r}: {reason}")
        self.connector_name = connector_name
        self.reason = reason
