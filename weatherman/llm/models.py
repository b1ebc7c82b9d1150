"""
Data models for the chat-completions API.

Field names follow the API's snake_case convention so that a
CompletionRequest can be dumped straight into the request body.
"""

from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """One role-tagged entry of a conversation."""

    role: Role = Field(description="Who produced the message")
    content: str = Field(description="Message text")

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(role="assistant", content=content)


class CompletionRequest(BaseModel):
    """Body of a POST to {endpoint}/chat/completions."""

    model: str
    messages: list[Message]
    max_tokens: int = Field(gt=0)
    temperature: float = Field(ge=0.0)


class TokenUsage(BaseModel):
    """Token accounting reported by the endpoint."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class Choice(BaseModel):
    """A single generated reply."""

    message: Message
    finish_reason: str | None = None


class CompletionResponse(BaseModel):
    """
    Parsed chat-completions response.

    Only the first choice is ever used; the rest are kept for logging.
    """

    choices: list[Choice] = Field(default_factory=list)
    usage: TokenUsage | None = None
    model: str | None = None

    @property
    def text(self) -> str:
        """Text of the first choice. Callers must check choices first."""
        return self.choices[0].message.content
