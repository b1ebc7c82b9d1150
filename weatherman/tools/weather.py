"""
WebSocket-based weather tool adapter.

Keeps one persistent WebSocket connection to the weather tool server and
exchanges `tools/call` messages over it: every call sends one request message
and reads exactly one reply message.

The protocol carries no request id, so a reply is matched to its request by
arrival order only. Calls are therefore serialized with a lock: at most one
request is ever outstanding on the connection.
"""

from __future__ import annotations

import asyncio
import json
import logging

from pydantic import ValidationError
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import WebSocketException
from websockets.protocol import State

from weatherman.errors import (
    ProtocolError,
    RemoteToolError,
    ToolResultError,
    ToolStateError,
    TransportError,
)
from weatherman.tools.base import ConnectionState, ToolAdapter
from weatherman.tools.models import (
    ToolArguments,
    ToolCallParams,
    ToolCallRequest,
    ToolCallResponse,
    ToolResult,
)

logger = logging.getLogger(__name__)

CURRENT_WEATHER_TOOL = "get_current_weather"
FORECAST_TOOL = "get_weather_forecast"


class WeatherToolClient(ToolAdapter):
    """
    Weather tool server client over a single WebSocket connection.

    Args:
        server_url: ws:// or wss:// URL of the tool server
        open_timeout: Seconds to wait for the opening handshake (None waits forever)
        max_message_size: Largest reply accepted, in bytes (None disables the limit)
    """

    def __init__(
        self,
        server_url: str,
        *,
        open_timeout: float | None = 10.0,
        max_message_size: int | None = 2**20,
    ):
        self._server_url = server_url
        self._open_timeout = open_timeout
        self._max_message_size = max_message_size
        self._connection: ClientConnection | None = None
        self._call_lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        if self._connection is not None and self._connection.state is State.OPEN:
            return ConnectionState.CONNECTED
        return ConnectionState.DISCONNECTED

    async def initialize(self) -> None:
        """Connect to the tool server."""
        if self.state is ConnectionState.CONNECTED:
            return

        logger.info(f"Connecting to tool server at {self._server_url}")
        try:
            self._connection = await connect(
                self._server_url,
                open_timeout=self._open_timeout,
                max_size=self._max_message_size,
            )
        except (OSError, TimeoutError, WebSocketException) as e:
            logger.error(f"Failed to connect to tool server at {self._server_url}: {e}")
            raise TransportError(
                f"Could not connect to tool server at {self._server_url}: {e}", cause=e
            ) from e

        logger.info("Connected to tool server")

    async def shutdown(self) -> None:
        """Close the connection gracefully."""
        if self._connection is None:
            return

        connection, self._connection = self._connection, None
        if connection.state is State.OPEN:
            logger.info("Disconnecting from tool server")
        await connection.close()

    async def call(self, tool_name: str, arguments: ToolArguments) -> ToolResult:
        """Send one tools/call request and wait for its reply."""
        if self.state is not ConnectionState.CONNECTED:
            raise ToolStateError("Not connected to the tool server")

        try:
            request = ToolCallRequest(params=ToolCallParams(name=tool_name, arguments=arguments))
        except ValidationError as e:
            raise ProtocolError(f"Invalid tool call {tool_name!r}", cause=e) from e
        logger.debug(f"Sending tool call: {tool_name} with args: {json.dumps(arguments)}")

        async with self._call_lock:
            # The connection may have been shut down while waiting for the lock
            if self.state is not ConnectionState.CONNECTED:
                raise ToolStateError("Not connected to the tool server")
            try:
                await self._connection.send(request.model_dump_json())
                raw_reply = await self._connection.recv()
            except (OSError, WebSocketException) as e:
                logger.error(f"Error calling tool {tool_name}: {e}")
                raise TransportError(f"Tool call {tool_name!r} failed: {e}", cause=e) from e

        logger.debug(f"Received tool reply: {raw_reply!r}")
        return self._decode_reply(tool_name, raw_reply)

    def _decode_reply(self, tool_name: str, raw_reply: str | bytes) -> ToolResult:
        try:
            response = ToolCallResponse.model_validate_json(raw_reply)
        except ValidationError as e:
            logger.error(f"Malformed reply for tool {tool_name}: {e}")
            raise ProtocolError(f"Malformed reply for tool {tool_name!r}", cause=e) from e

        if response.error is not None:
            logger.error(
                f"Tool server error for {tool_name}: {response.error.code} - {response.error.message}"
            )
            raise RemoteToolError(
                f"Tool server error: {response.error.message}",
                tool_name=tool_name,
                code=response.error.code,
            )

        if response.result is None:
            logger.error(f"No result received for tool {tool_name}")
            raise ProtocolError(f"No result received for tool {tool_name!r}")

        try:
            return ToolResult.model_validate(response.result)
        except ValidationError as e:
            logger.error(f"Invalid result payload for tool {tool_name}: {e}")
            raise ProtocolError(f"Invalid result payload for tool {tool_name!r}", cause=e) from e

    async def _call_for_text(self, tool_name: str, arguments: ToolArguments, label: str) -> str:
        result = await self.call(tool_name, arguments)
        if result.is_error:
            raise ToolResultError(
                f"{label} error: {result.joined_text(', ')}", tool_name=tool_name
            )
        return result.joined_text()

    async def get_current_weather(self, location: str) -> str:
        """
        Get current conditions for a location.

        Args:
            location: Location name or coordinates

        Returns:
            Current weather as text

        Raises:
            ToolResultError: If the tool flags its result as an error
        """
        return await self._call_for_text(
            CURRENT_WEATHER_TOOL, {"location": location}, "Current weather"
        )

    async def get_weather_forecast(self, location: str, days: int = 3) -> str:
        """
        Get a multi-day forecast for a location.

        Args:
            location: Location name or coordinates
            days: Number of days to forecast

        Returns:
            Forecast as text

        Raises:
            ToolResultError: If the tool flags its result as an error
        """
        return await self._call_for_text(
            FORECAST_TOOL, {"location": location, "days": days}, "Weather forecast"
        )
