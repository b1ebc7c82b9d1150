"""
Weatherman - console weather agent backed by a chat-completions model.

This package combines a hosted LLM endpoint with a WebSocket weather tool
server: the agent decides per turn whether live weather data is needed,
fetches it, and folds it into the conversation sent to the model.
"""

__version__ = "0.1.0"
