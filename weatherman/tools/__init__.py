"""
Tool Integration Layer.

Adapters for external tool servers the agent calls for live data. The
weather adapter talks to a tool server over a persistent WebSocket.
"""

from weatherman.tools.base import ConnectionState, ToolAdapter
from weatherman.tools.models import ToolArguments, ToolResult
from weatherman.tools.weather import WeatherToolClient

__all__ = [
    "ConnectionState",
    "ToolAdapter",
    "ToolArguments",
    "ToolResult",
    "WeatherToolClient",
]
