"""
Agent Layer.

The weather agent owns the conversation history and decides, per turn,
whether live weather data should be fetched and folded into the prompt.
"""

from weatherman.agent.orchestrator import (
    DEFAULT_LOCATION,
    FALLBACK_REPLY,
    WeatherAgent,
    WeatherNeed,
    parse_classification,
)

__all__ = [
    "DEFAULT_LOCATION",
    "FALLBACK_REPLY",
    "WeatherAgent",
    "WeatherNeed",
    "parse_classification",
]
