"""
Unit tests for WeatherToolClient.

These tests focus on the wrapper logic: connection state, request encoding,
reply decoding and error mapping. The WebSocket connection is mocked; for a
round-trip against a real server see tests/integration/tools/.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from websockets.exceptions import ConnectionClosedError, InvalidURI
from websockets.protocol import State

from weatherman.errors import (
    ProtocolError,
    RemoteToolError,
    ToolResultError,
    ToolStateError,
    TransportError,
)
from weatherman.tools.base import ConnectionState
from weatherman.tools.weather import WeatherToolClient

SERVER_URL = "ws://weather.example.test:8080/mcp"


def _text_result(*texts: str, is_error: bool = False) -> str:
    return json.dumps(
        {
            "result": {
                "isError": is_error,
                "content": [{"type": "text", "text": t} for t in texts],
            }
        }
    )


def _make_connection(*replies: str) -> MagicMock:
    """Mock ClientConnection that is open and answers with the given replies in order."""
    connection = MagicMock()
    connection.state = State.OPEN
    connection.send = AsyncMock()
    connection.recv = AsyncMock(side_effect=list(replies))
    connection.close = AsyncMock()
    return connection


async def _connected_client(connection: MagicMock) -> WeatherToolClient:
    client = WeatherToolClient(SERVER_URL)
    with patch("weatherman.tools.weather.connect", AsyncMock(return_value=connection)):
        await client.initialize()
    return client


def _sent_payload(connection: MagicMock, index: int = 0) -> dict:
    return json.loads(connection.send.await_args_list[index].args[0])


class TestConnectionLifecycle:
    """Tests for connect / disconnect and the state they report."""

    def test_starts_disconnected(self):
        client = WeatherToolClient(SERVER_URL)
        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_initialize_connects_with_configured_limits(self):
        connection = _make_connection()
        mock_connect = AsyncMock(return_value=connection)
        client = WeatherToolClient(SERVER_URL, open_timeout=5.0, max_message_size=8192)

        with patch("weatherman.tools.weather.connect", mock_connect):
            await client.initialize()

        mock_connect.assert_awaited_once_with(SERVER_URL, open_timeout=5.0, max_size=8192)
        assert client.state is ConnectionState.CONNECTED

    @pytest.mark.asyncio
    async def test_initialize_twice_keeps_existing_connection(self):
        connection = _make_connection()
        mock_connect = AsyncMock(return_value=connection)
        client = WeatherToolClient(SERVER_URL)

        with patch("weatherman.tools.weather.connect", mock_connect):
            await client.initialize()
            await client.initialize()

        assert mock_connect.await_count == 1

    @pytest.mark.asyncio
    async def test_unreachable_server_raises_transport_error(self):
        client = WeatherToolClient(SERVER_URL)
        mock_connect = AsyncMock(side_effect=ConnectionRefusedError("Connection refused"))

        with patch("weatherman.tools.weather.connect", mock_connect):
            with pytest.raises(TransportError, match="Could not connect"):
                await client.initialize()

        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_invalid_url_raises_transport_error(self):
        client = WeatherToolClient("http://not-a-websocket")
        mock_connect = AsyncMock(side_effect=InvalidURI("http://not-a-websocket", "scheme isn't ws or wss"))

        with patch("weatherman.tools.weather.connect", mock_connect):
            with pytest.raises(TransportError):
                await client.initialize()

    @pytest.mark.asyncio
    async def test_shutdown_closes_connection(self):
        connection = _make_connection()
        client = await _connected_client(connection)

        await client.shutdown()

        connection.close.assert_awaited_once()
        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_shutdown_when_disconnected_is_noop(self):
        client = WeatherToolClient(SERVER_URL)
        await client.shutdown()
        await client.shutdown()
        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_server_closed_connection_reads_as_disconnected(self):
        connection = _make_connection()
        client = await _connected_client(connection)

        connection.state = State.CLOSED

        assert client.state is ConnectionState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        connection = _make_connection()
        client = WeatherToolClient(SERVER_URL)

        with patch("weatherman.tools.weather.connect", AsyncMock(return_value=connection)):
            async with client as entered:
                assert entered is client
                assert client.state is ConnectionState.CONNECTED

        assert client.state is ConnectionState.DISCONNECTED
        connection.close.assert_awaited_once()


class TestCallTool:
    """Tests for the generic tools/call exchange."""

    @pytest.mark.asyncio
    async def test_call_when_never_connected_raises_state_error(self):
        client = WeatherToolClient(SERVER_URL)

        with pytest.raises(ToolStateError):
            await client.call("get_current_weather", {"location": "Rome"})

    @pytest.mark.asyncio
    async def test_call_after_server_close_does_not_touch_network(self):
        connection = _make_connection(_text_result("unused"))
        client = await _connected_client(connection)
        connection.state = State.CLOSED

        with pytest.raises(ToolStateError):
            await client.call("get_current_weather", {"location": "Rome"})

        connection.send.assert_not_awaited()
        connection.recv.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shutdown_while_waiting_for_lock_raises_state_error(self):
        connection = _make_connection(_text_result("unused"))
        client = await _connected_client(connection)

        async with client._call_lock:
            waiting = asyncio.create_task(client.call("get_current_weather", {"location": "Rome"}))
            await asyncio.sleep(0)
            await client.shutdown()

        with pytest.raises(ToolStateError):
            await waiting

        connection.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_tool_name_raises_protocol_error(self):
        connection = _make_connection(_text_result("unused"))
        client = await _connected_client(connection)

        with pytest.raises(ProtocolError, match="Invalid tool call"):
            await client.call("", {"location": "Rome"})

        connection.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sends_tools_call_request(self):
        connection = _make_connection(_text_result("ok"))
        client = await _connected_client(connection)

        await client.call("get_weather_forecast", {"location": "Rome", "days": 3})

        assert _sent_payload(connection) == {
            "method": "tools/call",
            "params": {
                "name": "get_weather_forecast",
                "arguments": {"location": "Rome", "days": 3},
            },
        }

    @pytest.mark.asyncio
    async def test_decodes_result_payload(self):
        connection = _make_connection(_text_result("Sunny", "24°C"))
        client = await _connected_client(connection)

        result = await client.call("get_current_weather", {"location": "Rome"})

        assert result.is_error is False
        assert [block.text for block in result.content] == ["Sunny", "24°C"]

    @pytest.mark.asyncio
    async def test_accepts_binary_reply(self):
        connection = _make_connection(_text_result("Sunny").encode("utf-8"))
        client = await _connected_client(connection)

        result = await client.call("get_current_weather", {"location": "Rome"})

        assert result.joined_text() == "Sunny"

    @pytest.mark.asyncio
    async def test_error_object_always_fails_the_call(self):
        reply = json.dumps({"error": {"code": -32602, "message": "Unknown location"}})
        connection = _make_connection(reply)
        client = await _connected_client(connection)

        with pytest.raises(RemoteToolError, match="Unknown location") as exc_info:
            await client.call("get_current_weather", {"location": "Atlantis"})

        assert exc_info.value.code == -32602
        assert exc_info.value.tool_name == "get_current_weather"

    @pytest.mark.asyncio
    async def test_error_object_wins_over_result(self):
        reply = json.dumps(
            {
                "result": {"isError": False, "content": [{"text": "fine"}]},
                "error": {"code": 1, "message": "broken"},
            }
        )
        connection = _make_connection(reply)
        client = await _connected_client(connection)

        with pytest.raises(RemoteToolError):
            await client.call("get_current_weather", {"location": "Rome"})

    @pytest.mark.asyncio
    async def test_reply_without_result_or_error_raises_protocol_error(self):
        connection = _make_connection(json.dumps({}))
        client = await _connected_client(connection)

        with pytest.raises(ProtocolError, match="No result"):
            await client.call("get_current_weather", {"location": "Rome"})

    @pytest.mark.asyncio
    async def test_non_json_reply_raises_protocol_error(self):
        connection = _make_connection("this is not json")
        client = await _connected_client(connection)

        with pytest.raises(ProtocolError, match="Malformed"):
            await client.call("get_current_weather", {"location": "Rome"})

    @pytest.mark.asyncio
    async def test_invalid_result_shape_raises_protocol_error(self):
        connection = _make_connection(json.dumps({"result": {"content": "not a list"}}))
        client = await _connected_client(connection)

        with pytest.raises(ProtocolError, match="Invalid result"):
            await client.call("get_current_weather", {"location": "Rome"})

    @pytest.mark.asyncio
    async def test_connection_lost_mid_call_raises_transport_error(self):
        connection = _make_connection()
        connection.recv = AsyncMock(side_effect=ConnectionClosedError(None, None))
        client = await _connected_client(connection)

        with pytest.raises(TransportError, match="get_current_weather"):
            await client.call("get_current_weather", {"location": "Rome"})

    @pytest.mark.asyncio
    async def test_concurrent_calls_never_interleave(self):
        events = []
        connection = _make_connection()

        async def send(payload):
            events.append(("send", json.loads(payload)["params"]["arguments"]["location"]))
            await asyncio.sleep(0)

        async def recv():
            await asyncio.sleep(0)
            events.append(("recv",))
            return _text_result("ok")

        connection.send = AsyncMock(side_effect=send)
        connection.recv = AsyncMock(side_effect=recv)
        client = await _connected_client(connection)

        await asyncio.gather(
            client.call("get_current_weather", {"location": "Rome"}),
            client.call("get_current_weather", {"location": "Oslo"}),
        )

        assert events == [("send", "Rome"), ("recv",), ("send", "Oslo"), ("recv",)]


class TestWeatherConveniences:
    """Tests for get_current_weather / get_weather_forecast."""

    @pytest.mark.asyncio
    async def test_current_weather_sends_location_only(self):
        connection = _make_connection(_text_result("Clear, 18°C"))
        client = await _connected_client(connection)

        text = await client.get_current_weather("Rome")

        assert text == "Clear, 18°C"
        assert _sent_payload(connection)["params"] == {
            "name": "get_current_weather",
            "arguments": {"location": "Rome"},
        }

    @pytest.mark.asyncio
    async def test_forecast_sends_integer_days(self):
        connection = _make_connection(_text_result("Mon: rain", "Tue: sun"))
        client = await _connected_client(connection)

        text = await client.get_weather_forecast("Rome", days=2)

        assert text == "Mon: rain\nTue: sun"
        params = _sent_payload(connection)["params"]
        assert params["name"] == "get_weather_forecast"
        assert params["arguments"] == {"location": "Rome", "days": 2}

    @pytest.mark.asyncio
    async def test_forecast_defaults_to_three_days(self):
        connection = _make_connection(_text_result("..."))
        client = await _connected_client(connection)

        await client.get_weather_forecast("Rome")

        assert _sent_payload(connection)["params"]["arguments"]["days"] == 3

    @pytest.mark.asyncio
    async def test_error_flag_raises_with_all_block_texts(self):
        connection = _make_connection(
            _text_result("Location not found", "try a city name", is_error=True)
        )
        client = await _connected_client(connection)

        with pytest.raises(ToolResultError) as exc_info:
            await client.get_current_weather("Nowhere")

        assert str(exc_info.value) == "Current weather error: Location not found, try a city name"
        assert exc_info.value.tool_name == "get_current_weather"

    @pytest.mark.asyncio
    async def test_forecast_error_flag_raises(self):
        connection = _make_connection(_text_result("Service down", is_error=True))
        client = await _connected_client(connection)

        with pytest.raises(ToolResultError, match="Weather forecast error: Service down"):
            await client.get_weather_forecast("Rome")
