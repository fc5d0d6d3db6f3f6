"""
Schema definitions for the conversation protocol shared by backends, the tool loop and tools.

These data models are the contract between a completion backend, the tool-calling loop, and
individual tools.  We keep them separate from runtime logic so they can be imported anywhere without
side-effects.

Content is a closed sum type: user messages carry :class:`Text` or :class:`ToolResult` items,
assistant messages carry :class:`Text` or :class:`ToolCall` items.  Every site that inspects content
handles each variant explicitly and raises :class:`TypeError` on anything else.
"""

from typing import (
    Annotated,
    Any,
    Dict,
    List,
    Literal,
    Optional,
    Union,
)

from pydantic import (
    BaseModel,
    Field,
)


# ---------------------------------------------------------------------------
# Content variants
# ---------------------------------------------------------------------------
class Text(BaseModel):
    """Plain text produced by the user or the assistant."""

    type: Literal["text"] = "text"
    text: str


class ToolCall(BaseModel):
    """A call that the backend wants the loop to execute."""

    type: Literal["tool_call"] = "tool_call"
    id: str = Field(..., description="Backend-assigned call id, echoed by the matching result")
    name: str = Field(..., description="Registered tool name")
    arguments: Any = Field(default_factory=dict, description="Structured argument payload")


class ToolResult(BaseModel):
    """The value a tool returned for a given :class:`ToolCall`."""

    type: Literal["tool_result"] = "tool_result"
    id: str
    name: str
    result: Any = None


UserContent = Annotated[Union[Text, ToolResult], Field(discriminator="type")]
AssistantContent = Annotated[Union[Text, ToolCall], Field(discriminator="type")]


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------
class UserMessage(BaseModel):
    """A user turn.  Tool results travel back to the backend as user messages."""

    role: Literal["user"] = "user"
    content: List[UserContent] = Field(..., min_length=1)

    @classmethod
    def from_text(cls, text: str) -> "UserMessage":
        """Build a single-text user message."""
        return cls(content=[Text(text=text)])


class AssistantMessage(BaseModel):
    """An assistant turn, recorded verbatim from a completion response."""

    role: Literal["assistant"] = "assistant"
    content: List[AssistantContent] = Field(..., min_length=1)

    @classmethod
    def from_text(cls, text: str) -> "AssistantMessage":
        """Build a single-text assistant message."""
        return cls(content=[Text(text=text)])


Message = Annotated[Union[UserMessage, AssistantMessage], Field(discriminator="role")]


# ---------------------------------------------------------------------------
# Completion request / response
# ---------------------------------------------------------------------------
class ToolDefinition(BaseModel):
    """Advertised description of a tool, as sent to the backend."""

    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=lambda: {"type": "object"})


class CompletionRequest(BaseModel):
    """Everything a backend needs for one round-trip."""

    preamble: Optional[str] = None
    chat_history: List[Message] = Field(default_factory=list)
    temperature: Optional[float] = None
    tools: List[ToolDefinition] = Field(default_factory=list)


class CompletionResponse(BaseModel):
    """Assistant content for one round-trip plus the untouched backend payload."""

    content: List[AssistantContent] = Field(default_factory=list)
    raw_response: Any = None


def text_of(content: List[AssistantContent]) -> List[str]:
    """Return the text of every :class:`Text` item in *content*, in order."""
    texts: List[str] = []
    for item in content:
        if isinstance(item, Text):
            texts.append(item.text)
        elif isinstance(item, ToolCall):
            continue
        else:
            raise TypeError(f"Unhandled assistant content variant: {type(item).__name__}")
    return texts


def tool_calls_of(content: List[AssistantContent]) -> List[ToolCall]:
    """Return every :class:`ToolCall` in *content*, in order."""
    calls: List[ToolCall] = []
    for item in content:
        if isinstance(item, ToolCall):
            calls.append(item)
        elif isinstance(item, Text):
            continue
        else:
            raise TypeError(f"Unhandled assistant content variant: {type(item).__name__}")
    return calls
