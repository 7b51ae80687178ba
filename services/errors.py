"""Error taxonomy shared by the HTTP collaborators, the checkpoint and config."""

from __future__ import annotations

from typing import Optional


class AgentError(Exception):
    """Base class for every failure the control loops know how to absorb."""


class TransportError(AgentError):
    """The request never produced a response (connection refused, timeout...)."""


class ProtocolError(AgentError):
    """The remote side answered with a status code we do not accept."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(ProtocolError):
    """The identity endpoint rejected a login or refresh."""


class DecodeError(AgentError):
    """A response body could not be decoded into the expected shape."""


class CheckpointError(AgentError):
    """The checkpoint file is missing, unreadable, unparsable or unwritable."""


class ConfigError(AgentError):
    """The agent configuration could not be loaded."""
