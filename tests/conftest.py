"""Shared fakes: a scripted completion backend and in-memory DAG channels."""

from __future__ import annotations

from typing import (
    Any,
    Callable,
    Dict,
    List,
    Sequence,
    Union,
)

import pytest

from libra_ai.agent.completion import CompletionModel
from libra_ai.core.schema import (
    CompletionRequest,
    CompletionResponse,
    Text,
    ToolCall,
)
from libra_ai.dag.contract import ChannelError
from libra_ai.tools import (
    FunctionTool,
    ToolRegistry,
)

Step = Union[CompletionResponse, BaseException, Callable[[CompletionRequest], CompletionResponse]]


def text_response(*texts: str) -> CompletionResponse:
    return CompletionResponse(content=[Text(text=t) for t in texts])


def call_response(*calls: tuple[str, str, Any]) -> CompletionResponse:
    """Build a response from ``(id, name, arguments)`` triples."""
    return CompletionResponse(
        content=[ToolCall(id=cid, name=name, arguments=args) for cid, name, args in calls]
    )


class ScriptedModel(CompletionModel):
    """Replays a fixed list of responses (or raises scripted exceptions), recording each request."""

    def __init__(self, steps: Sequence[Step], repeat_last: bool = False):
        self.steps = list(steps)
        self.repeat_last = repeat_last
        self.requests: List[CompletionRequest] = []

    async def completion(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        index = len(self.requests) - 1
        if index >= len(self.steps):
            if not self.repeat_last:
                raise AssertionError("ScriptedModel ran out of responses")
            index = len(self.steps) - 1
        step = self.steps[index]
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return step(request)
        return step


class FakeInChannels:
    """Inbound channels backed by a dict; values that are exceptions are raised on receive."""

    def __init__(self, values: Dict[str, Any], order: Sequence[str] | None = None):
        self.values = values
        self.order = list(order) if order is not None else list(values)
        self.received: List[str] = []

    def sender_ids(self) -> List[str]:
        return list(self.order)

    async def recv_from(self, sender_id: str) -> Any:
        self.received.append(sender_id)
        value = self.values[sender_id]
        if isinstance(value, Exception):
            raise ChannelError(str(value))
        return value


class FakeOutChannels:
    """Collects broadcast values."""

    def __init__(self) -> None:
        self.sent: List[Any] = []

    async def broadcast(self, value: Any) -> None:
        self.sent.append(value)


@pytest.fixture
def mock_registry() -> ToolRegistry:
    """A registry with a single ``mock_tool`` returning ``{"ok": True}``."""

    def mock_tool(value: int = 0) -> dict:
        """Mock tool"""
        return {"ok": True, "value": value}

    return ToolRegistry([FunctionTool(mock_tool)])
