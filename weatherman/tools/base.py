"""
Base classes for tool adapters.

Provides the abstract interface for tool servers the agent talks to, and the
connection states every adapter reports.
"""

from abc import ABC, abstractmethod
from enum import Enum

from weatherman.tools.models import ToolArguments, ToolResult


class ConnectionState(str, Enum):
    """Lifecycle of a tool adapter's connection."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ToolAdapter(ABC):
    """
    Abstract base class for tool adapters.

    An adapter owns one connection to a tool server. It moves from
    DISCONNECTED to CONNECTED only through initialize(), and back through
    shutdown() or when the server goes away.
    """

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        """Current connection state."""

    @abstractmethod
    async def initialize(self) -> None:
        """
        Open the connection to the tool server.

        Raises:
            TransportError: If the server cannot be reached
        """
        pass

    @abstractmethod
    async def shutdown(self) -> None:
        """
        Cleanly close the connection.

        Calling this on a disconnected adapter does nothing.
        """
        pass

    @abstractmethod
    async def call(self, tool_name: str, arguments: ToolArguments) -> ToolResult:
        """
        Call a tool with the given arguments.

        Args:
            tool_name: Name of the tool to invoke
            arguments: Tool-specific arguments

        Returns:
            The tool's result

        Raises:
            ToolStateError: If the adapter is not connected
            TransportError: If the connection fails mid-call
            ProtocolError: If the reply cannot be decoded
            RemoteToolError: If the server reports an error
        """
        pass

    async def __aenter__(self):
        """Context manager entry - initialize the adapter."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - shutdown the adapter."""
        await self.shutdown()
        return False
