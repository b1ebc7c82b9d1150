"""
Completion client for an OpenAI-compatible chat-completions endpoint.

Each call is a single request/response round-trip:

    list[Message] → CompletionRequest → LiteLLM acompletion()
                                              ↓
                    POST {endpoint}/chat/completions
                    Authorization: Bearer <api_key>
                    User-Agent: <client identifier>
                                              ↓
                    CompletionResponse → first choice text

LiteLLM is pointed at the configured endpoint with the OpenAI-compatible
provider, so the same client works for GitHub Models, Azure inference or any
other server speaking the chat-completions protocol.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from litellm import acompletion

from weatherman.config.settings import LLMSettings
from weatherman.errors import ConfigurationError, ProtocolError, TransportError
from weatherman.llm.models import (
    Choice,
    CompletionRequest,
    CompletionResponse,
    Message,
    TokenUsage,
)

logger = logging.getLogger(__name__)


class CompletionClient:
    """
    Stateless chat-completion client.

    The only per-instance state is the fixed configuration: endpoint,
    credential, model name and the token/temperature defaults.

    Args:
        settings: LLM configuration (endpoint, api_key, model, max_tokens, temperature)
    """

    def __init__(self, settings: LLMSettings):
        self._settings = settings

    def _build_request(self, messages: Sequence[Message]) -> CompletionRequest:
        return CompletionRequest(
            model=self._settings.model,
            messages=list(messages),
            max_tokens=self._settings.max_tokens,
            temperature=self._settings.temperature,
        )

    async def create_completion(self, messages: Sequence[Message]) -> CompletionResponse:
        """
        Send the messages to the completion endpoint.

        Args:
            messages: Conversation to complete, oldest first

        Returns:
            Parsed response with at least one choice

        Raises:
            ConfigurationError: If no API key is configured
            TransportError: If the endpoint is unreachable or returns a non-success status
            ProtocolError: If the response contains no choices
        """
        if not self._settings.api_key:
            raise ConfigurationError("API key not configured. Set LLM__API_KEY in your .env file.")

        payload = self._build_request(messages).model_dump()
        logger.debug(f"Sending completion request: {json.dumps(payload)}")

        try:
            raw_response = await acompletion(
                **payload,
                custom_llm_provider="openai",
                api_base=self._settings.endpoint,
                api_key=self._settings.api_key,
                extra_headers={"User-Agent": self._settings.user_agent},
            )
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            logger.error(f"Completion API error: {status_code} - {e}")
            raise TransportError(
                f"Completion API call failed: {e}", cause=e, status_code=status_code
            ) from e

        response = _parse_response(raw_response)
        logger.debug(f"Received completion response: {response.model_dump_json()}")

        if not response.choices:
            logger.error("Completion API returned no choices")
            raise ProtocolError("No response content received from completion API")

        total_tokens = response.usage.total_tokens if response.usage else 0
        logger.info(f"Completion received, tokens used: {total_tokens}")
        return response

    async def complete(self, messages: Sequence[Message]) -> str:
        """Return the text of the first choice for the given conversation."""
        response = await self.create_completion(messages)
        return response.text


def _parse_response(raw: Any) -> CompletionResponse:
    """Convert a LiteLLM ModelResponse into our CompletionResponse model."""
    choices = [
        Choice(
            message=Message(
                role=getattr(choice.message, "role", None) or "assistant",
                content=choice.message.content or "",
            ),
            finish_reason=getattr(choice, "finish_reason", None),
        )
        for choice in (getattr(raw, "choices", None) or [])
    ]

    usage = None
    raw_usage = getattr(raw, "usage", None)
    if raw_usage is not None:
        usage = TokenUsage(
            prompt_tokens=raw_usage.prompt_tokens or 0,
            completion_tokens=raw_usage.completion_tokens or 0,
            total_tokens=raw_usage.total_tokens or 0,
        )

    return CompletionResponse(
        choices=choices,
        usage=usage,
        model=getattr(raw, "model", None),
    )
