"""
Wire models for the tool server's `tools/call` protocol.

Request:   {"method": "tools/call", "params": {"name": ..., "arguments": {...}}}
Response:  {"result": {...}}  or  {"error": {"code": ..., "message": ...}}
Result:    {"isError": false, "content": [{"type": "text", "text": ...}]}

The tool server speaks camelCase (isError); attributes here are snake_case
and serialize by alias.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Tool arguments are a flat map to a small closed set of scalar types
ToolArgumentValue = str | int
ToolArguments = dict[str, ToolArgumentValue]


class ToolCallParams(BaseModel):
    name: str = Field(min_length=1, description="Name of the tool to invoke")
    arguments: ToolArguments = Field(default_factory=dict)


class ToolCallRequest(BaseModel):
    """A single tool invocation sent as one text message."""

    method: Literal["tools/call"] = "tools/call"
    params: ToolCallParams


class ToolCallError(BaseModel):
    code: int
    message: str
    data: Any = None


class ToolCallResponse(BaseModel):
    """
    Reply to a ToolCallRequest.

    A well-formed reply populates exactly one of result / error. The result is
    kept as a raw dict here and validated into a ToolResult separately.
    """

    result: dict[str, Any] | None = None
    error: ToolCallError | None = None

    model_config = ConfigDict(extra="ignore")


class ContentBlock(BaseModel):
    type: str = "text"
    text: str = ""

    model_config = ConfigDict(extra="allow")


class ToolResult(BaseModel):
    """Outcome of a tool call: an error flag and ordered text blocks."""

    is_error: bool = Field(default=False, alias="isError")
    content: list[ContentBlock] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    def joined_text(self, separator: str = "\n") -> str:
        """Concatenate the text of all content blocks."""
        return separator.join(block.text for block in self.content)
