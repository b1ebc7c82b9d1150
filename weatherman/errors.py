"""
Error taxonomy shared by the completion client, the tool client and the agent.

Each error class corresponds to one failure kind:

    TransportError      non-success HTTP status, unreachable endpoint or socket
    ProtocolError       malformed or empty response payload
    ToolStateError      tool call attempted while disconnected
    RemoteToolError     error object reported by the tool server
    ToolResultError     tool result flagged with isError
    ConfigurationError  a required setting is missing at call time

The agent is the single recovery point: it maps any of these into a fixed
fallback reply, so they never reach the console.
"""

from __future__ import annotations


class WeathermanError(Exception):
    """Base class for all errors raised by weatherman components."""

    kind = "error"

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationError(WeathermanError):
    """A required setting is missing or invalid."""

    kind = "config"


class TransportError(WeathermanError):
    """The remote endpoint could not be reached or answered with a failure status."""

    kind = "transport"

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code


class ProtocolError(WeathermanError):
    """The remote endpoint answered with a payload we cannot use."""

    kind = "protocol"


class ToolStateError(WeathermanError):
    """A tool call was attempted while the tool connection is not open."""

    kind = "state"


class RemoteToolError(WeathermanError):
    """The tool server reported an error object for a call."""

    kind = "remote"

    def __init__(
        self,
        message: str,
        tool_name: str,
        code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.tool_name = tool_name
        self.code = code


class ToolResultError(RemoteToolError):
    """A tool call succeeded at the protocol level but its result is flagged as an error."""
