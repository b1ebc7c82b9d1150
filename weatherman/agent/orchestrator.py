"""
Weather agent conversation orchestrator.

Sits between the console and the two remote services. Each user turn runs
strictly in sequence:

    user text → history
                  ↓
    classification completion ("does this need weather data, and where?")
                  ↓ (only if needed)
    WeatherToolClient: current conditions + N-day forecast → context block
                  ↓
    context block appended to the user's history entry
                  ↓
    final completion over the full history → assistant reply → history
                  ↓
    sliding-window trim (system prompt + 10 most recent entries)

Failure policy:
- A failure while fetching weather data never aborts the turn. The context
  block becomes a fixed "currently unavailable" line and the model answers
  with that.
- Any other failure is logged and turned into a fixed apology. The console
  never sees an exception from process_message().
- Cancellation is not caught and propagates to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from weatherman.llm.client import CompletionClient
from weatherman.llm.models import Message
from weatherman.tools.weather import WeatherToolClient

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

ANALYZER_SYSTEM_PROMPT = "You are a text analyzer that determines if weather data is needed."
DEFAULT_LOCATION = "current location"
FALLBACK_REPLY = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Please try again later."
)

_NEEDS_WEATHER_MARKER = "needs_weather: yes"
_LOCATION_LABEL = "location:"
_NOT_SPECIFIED = "not specified"


def load_prompt(name: str) -> str:
    """Read a prompt template shipped in weatherman/prompts/."""
    return (_PROMPTS_DIR / f"{name}.txt").read_text(encoding="utf-8").strip()


@dataclass(frozen=True)
class WeatherNeed:
    """Outcome of the classification round-trip."""

    needed: bool
    location: str = DEFAULT_LOCATION


def parse_classification(analysis: str) -> WeatherNeed:
    """
    Parse the analyzer's two-line reply.

    Expected shape:
        NEEDS_WEATHER: yes
        LOCATION: Paris

    Matching is case-insensitive. The location falls back to
    DEFAULT_LOCATION when the line is missing, empty, or 'not specified'.
    """
    needed = _NEEDS_WEATHER_MARKER in analysis.lower()
    if not needed:
        return WeatherNeed(needed=False)

    location = DEFAULT_LOCATION
    for line in analysis.splitlines():
        line = line.strip()
        if line.lower().startswith(_LOCATION_LABEL):
            extracted = line[len(_LOCATION_LABEL):].strip().strip("[]").strip()
            if extracted and extracted.lower() != _NOT_SPECIFIED:
                location = extracted
            break

    return WeatherNeed(needed=True, location=location)


class WeatherAgent:
    """
    Conversational weather agent with a bounded message history.

    The history always starts with the system prompt. It is mutated in place
    every turn and trimmed to the system prompt plus the MAX_RECENT_MESSAGES
    most recent entries.

    The tool connection is owned by the agent for its whole lifetime: opened
    once by initialize() and closed once by shutdown(). Turns must not run
    concurrently, since the tool connection serves one call at a time.

    Args:
        completion_client: Client for the chat-completions endpoint
        tool_client: Connected-on-initialize weather tool client
        system_prompt: Override for the default system prompt
        forecast_days: Days requested from the forecast tool (default: 3)
    """

    MAX_RECENT_MESSAGES = 10

    def __init__(
        self,
        completion_client: CompletionClient,
        tool_client: WeatherToolClient,
        system_prompt: str | None = None,
        forecast_days: int = 3,
    ):
        self._completion_client = completion_client
        self._tool_client = tool_client
        self._forecast_days = forecast_days
        self._classify_template = load_prompt("classify")
        self._history: list[Message] = [
            Message.system(system_prompt if system_prompt is not None else load_prompt("system"))
        ]

    @property
    def history(self) -> list[Message]:
        """A copy of the conversation history, system prompt first."""
        return list(self._history)

    async def initialize(self) -> None:
        """Connect to the tool server. Failures propagate; startup cannot continue without it."""
        logger.info("Initializing weather agent...")
        await self._tool_client.initialize()
        logger.info("Weather agent initialized")

    async def shutdown(self) -> None:
        logger.info("Shutting down weather agent...")
        await self._tool_client.shutdown()
        logger.info("Weather agent shut down")

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
        return False

    async def process_message(self, user_message: str) -> str:
        """
        Run one conversation turn.

        Args:
            user_message: The user's raw input

        Returns:
            The model's reply, or FALLBACK_REPLY if anything went wrong
        """
        try:
            logger.info(f"Processing user message: {user_message!r}")
            self._history.append(Message.user(user_message))

            need = await self._determine_weather_need(user_message)

            weather_context = ""
            if need.needed:
                logger.info(f"Weather data needed for location: {need.location}")
                weather_context = await self._get_weather_context(need.location)

            if weather_context:
                self._history[-1] = Message.user(
                    f"{user_message}\n\n[Current Weather Data for context:\n{weather_context}]"
                )

            reply = await self._completion_client.complete(list(self._history))
            self._history.append(Message.assistant(reply))
            self._trim_history()

            logger.info("Agent response generated")
            return reply
        except Exception:
            logger.exception("Error processing user message")
            return FALLBACK_REPLY

    async def _determine_weather_need(self, user_message: str) -> WeatherNeed:
        """Ask the model whether the message needs weather data, and for where."""
        analysis_messages = [
            Message.system(ANALYZER_SYSTEM_PROMPT),
            Message.user(self._classify_template.replace("{user_message}", user_message)),
        ]
        analysis = await self._completion_client.complete(analysis_messages)
        logger.debug(f"Classification reply: {analysis!r}")
        return parse_classification(analysis)

    async def _get_weather_context(self, location: str) -> str:
        """Fetch current conditions and forecast; degrade to a fixed notice on any failure."""
        try:
            current = await self._tool_client.get_current_weather(location)
            forecast = await self._tool_client.get_weather_forecast(location, self._forecast_days)
        except Exception as e:
            logger.warning(f"Could not retrieve weather data for location {location!r}: {e}")
            return f"Weather data for {location} is currently unavailable."

        return (
            f"Current Weather for {location}:\n{current}\n\n"
            f"{self._forecast_days}-Day Forecast:\n{forecast}"
        )

    def _trim_history(self) -> None:
        """Keep the system prompt plus the most recent MAX_RECENT_MESSAGES entries."""
        if len(self._history) > self.MAX_RECENT_MESSAGES + 1:
            system_message = self._history[0]
            self._history[:] = [system_message, *self._history[-self.MAX_RECENT_MESSAGES:]]
