"""
Completion Layer.

Wraps a hosted chat-completions endpoint behind a single async call:

    list[Message]  →  CompletionClient.complete()  →  reply text

The client is stateless; conversation memory lives in the agent.
"""

from weatherman.llm.client import CompletionClient
from weatherman.llm.models import (
    Choice,
    CompletionRequest,
    CompletionResponse,
    Message,
    Role,
    TokenUsage,
)

__all__ = [
    "CompletionClient",
    "Choice",
    "CompletionRequest",
    "CompletionResponse",
    "Message",
    "Role",
    "TokenUsage",
]
