"""Tests for the bounded tool-calling loop."""

import asyncio
from typing import List

import pytest
from conftest import (
    ScriptedModel,
    call_response,
    text_response,
)

from libra_ai.agent.agent_loop import (
    MaxStepsExceededError,
    ToolLoopConfig,
    ToolLoopObserver,
    run_tool_loop,
    run_tool_loop_with_history,
)
from libra_ai.agent.completion import (
    BackendError,
    CompletionError,
    UnusableResponseError,
)
from libra_ai.agent.tool_executor import (
    ToolExecutionError,
    ToolNotFoundError,
)
from libra_ai.core.schema import (
    AssistantMessage,
    CompletionResponse,
    Text,
    ToolCall,
    ToolResult,
    UserMessage,
)
from libra_ai.tools import (
    FunctionTool,
    ToolRegistry,
)


@pytest.mark.asyncio
async def test_text_only_response_is_joined_with_newlines(mock_registry) -> None:
    """Without tool calls the answer is every text item joined by newline."""

    model = ScriptedModel([text_response("first", "second", "third")])
    assert await run_tool_loop(model, "hi", mock_registry) == "first\nsecond\nthird"
    assert len(model.requests) == 1


@pytest.mark.asyncio
async def test_tool_call_then_text(mock_registry) -> None:
    """One tool round followed by a text answer returns the second response's text."""

    model = ScriptedModel(
        [call_response(("call_1", "mock_tool", {"value": 1})), text_response("done")]
    )
    assert await run_tool_loop(model, "hi", mock_registry) == "done"

    second = model.requests[1].chat_history
    assert [m.role for m in second] == ["user", "assistant", "user"]
    result = second[2].content[0]
    assert isinstance(result, ToolResult)
    assert (result.id, result.name, result.result) == ("call_1", "mock_tool", {"ok": True, "value": 1})


@pytest.mark.asyncio
async def test_request_carries_preamble_temperature_and_tools(mock_registry) -> None:
    """Each request is built from the loop configuration."""

    model = ScriptedModel([text_response("ok")])
    config = ToolLoopConfig(preamble="be brief", temperature=0.3)
    await run_tool_loop(model, "hi", mock_registry, config)

    request = model.requests[0]
    assert request.preamble == "be brief"
    assert request.temperature == 0.3
    assert [t.name for t in request.tools] == ["mock_tool"]
    assert request.chat_history == [UserMessage.from_text("hi")]


@pytest.mark.asyncio
async def test_results_preserve_call_order_in_one_user_message() -> None:
    """k calls in a round produce exactly k results, in call order, in a single user message."""

    order: List[str] = []

    def record(tag: str) -> str:
        order.append(tag)
        return tag.upper()

    registry = ToolRegistry([FunctionTool(record)])
    model = ScriptedModel(
        [
            call_response(
                ("a", "record", {"tag": "x"}),
                ("b", "record", {"tag": "y"}),
                ("c", "record", {"tag": "z"}),
            ),
            text_response("done"),
        ]
    )
    await run_tool_loop(model, "go", registry)

    assert order == ["x", "y", "z"]
    last = model.requests[1].chat_history[-1]
    assert isinstance(last, UserMessage)
    assert [(r.id, r.result) for r in last.content] == [("a", "X"), ("b", "Y"), ("c", "Z")]


@pytest.mark.asyncio
async def test_assistant_turn_is_recorded_verbatim(mock_registry) -> None:
    """Interleaved text in a tool-call round is kept in the assistant message."""

    response = CompletionResponse(
        content=[
            Text(text="let me check"),
            ToolCall(id="1", name="mock_tool", arguments={}),
        ]
    )
    model = ScriptedModel([response, text_response("done")])
    await run_tool_loop(model, "hi", mock_registry)

    assistant = model.requests[1].chat_history[1]
    assert isinstance(assistant, AssistantMessage)
    assert assistant.content == response.content


@pytest.mark.parametrize("max_steps", [0, 1, 2, 5])
@pytest.mark.asyncio
async def test_step_bound_counts(max_steps: int) -> None:
    """A backend that always calls a tool gets N executions and N+1 completions, then fails."""

    calls: List[int] = []

    def always_tool() -> dict:
        calls.append(1)
        return {"ok": True}

    registry = ToolRegistry([FunctionTool(always_tool)])
    model = ScriptedModel([call_response(("call", "always_tool", {}))], repeat_last=True)

    with pytest.raises(MaxStepsExceededError) as info:
        await run_tool_loop(model, "hi", registry, ToolLoopConfig(max_steps=max_steps))

    assert len(calls) == max_steps
    assert len(model.requests) == max_steps + 1
    assert info.value.max_steps == max_steps
    assert "max steps" in str(info.value)


@pytest.mark.asyncio
async def test_step_bound_not_hit_at_exact_count(mock_registry) -> None:
    """Exactly N tool rounds followed by text succeed under a bound of N."""

    model = ScriptedModel(
        [
            call_response(("1", "mock_tool", {})),
            call_response(("2", "mock_tool", {})),
            text_response("done"),
        ]
    )
    result = await run_tool_loop(model, "hi", mock_registry, ToolLoopConfig(max_steps=2))
    assert result == "done"


@pytest.mark.asyncio
async def test_non_text_response_is_unusable(mock_registry) -> None:
    """A response with empty content is a protocol violation."""

    empty = ScriptedModel([CompletionResponse(content=[])])
    with pytest.raises(UnusableResponseError):
        await run_tool_loop(empty, "hi", mock_registry)


@pytest.mark.asyncio
async def test_unknown_tool_stops_remaining_calls(mock_registry) -> None:
    """An unknown tool aborts the round before later calls run."""

    ran: List[str] = []

    def mock_tool() -> str:
        ran.append("mock")
        return "ok"

    registry = ToolRegistry([FunctionTool(mock_tool)])
    model = ScriptedModel(
        [call_response(("1", "missing", {}), ("2", "mock_tool", {})), text_response("never")]
    )
    with pytest.raises(ToolNotFoundError, match="Tool not found: missing"):
        await run_tool_loop(model, "hi", registry)
    assert ran == []
    assert len(model.requests) == 1


@pytest.mark.asyncio
async def test_allow_list_hides_tools(mock_registry) -> None:
    """Tools outside the allow-list are neither advertised nor callable."""

    model = ScriptedModel([call_response(("1", "mock_tool", {}))])
    config = ToolLoopConfig(allowed_tools=frozenset({"other"}))
    with pytest.raises(ToolNotFoundError):
        await run_tool_loop(model, "hi", mock_registry, config)
    assert model.requests[0].tools == []


@pytest.mark.asyncio
async def test_tool_failure_is_fatal() -> None:
    """A raising tool aborts the loop with the tool name attached."""

    def broken() -> None:
        raise ValueError("disk full")

    registry = ToolRegistry([FunctionTool(broken)])
    model = ScriptedModel([call_response(("1", "broken", {})), text_response("never")])
    with pytest.raises(ToolExecutionError) as info:
        await run_tool_loop(model, "hi", registry)
    assert info.value.name == "broken"
    assert "disk full" in str(info.value)


@pytest.mark.asyncio
async def test_backend_errors_are_wrapped(mock_registry) -> None:
    """Arbitrary backend exceptions surface as BackendError; CompletionErrors pass through."""

    model = ScriptedModel([ConnectionError("quota")])
    with pytest.raises(BackendError) as info:
        await run_tool_loop(model, "hi", mock_registry)
    assert isinstance(info.value.__cause__, ConnectionError)

    own = CompletionError("rate limited")
    model = ScriptedModel([own])
    with pytest.raises(CompletionError) as info:
        await run_tool_loop(model, "hi", mock_registry)
    assert info.value is own


@pytest.mark.asyncio
async def test_cancelled_backend_propagates(mock_registry) -> None:
    """Cancellation inside the backend call is not absorbed."""

    model = ScriptedModel([asyncio.CancelledError()])
    with pytest.raises(asyncio.CancelledError):
        await run_tool_loop(model, "hi", mock_registry)


@pytest.mark.asyncio
async def test_history_is_copied_and_returned(mock_registry) -> None:
    """The caller's history is not mutated and the outcome includes the final assistant turn."""

    history = [UserMessage.from_text("hi")]
    model = ScriptedModel([call_response(("1", "mock_tool", {})), text_response("done")])
    outcome = await run_tool_loop_with_history(model, history, mock_registry)

    assert history == [UserMessage.from_text("hi")]
    assert outcome.text == "done"
    assert [m.role for m in outcome.history] == ["user", "assistant", "user", "assistant"]
    assert outcome.history[-1] == AssistantMessage.from_text("done")


class RecordingObserver(ToolLoopObserver):
    def __init__(self) -> None:
        self.events: List[tuple] = []

    def on_round_start(self, step, request) -> None:
        self.events.append(("start", step))

    def on_tool_dispatched(self, step, call) -> None:
        self.events.append(("tool", step, call.name))

    def on_round_completed(self, step, results) -> None:
        self.events.append(("done", step, len(results)))


class BrokenObserver(ToolLoopObserver):
    def on_round_start(self, step, request) -> None:
        raise RuntimeError("observer bug")


@pytest.mark.asyncio
async def test_observer_sees_each_phase(mock_registry) -> None:
    """Observer hooks fire at round start, tool dispatch and round completion."""

    observer = RecordingObserver()
    model = ScriptedModel([call_response(("1", "mock_tool", {})), text_response("done")])
    await run_tool_loop(model, "hi", mock_registry, ToolLoopConfig(observer=observer))
    assert observer.events == [("start", 1), ("tool", 1, "mock_tool"), ("done", 1, 1), ("start", 2)]


@pytest.mark.asyncio
async def test_failing_observer_does_not_change_outcome(mock_registry) -> None:
    """An exception inside a hook is logged, not propagated."""

    model = ScriptedModel([text_response("fine")])
    config = ToolLoopConfig(observer=BrokenObserver())
    assert await run_tool_loop(model, "hi", mock_registry, config) == "fine"


def test_config_rejects_negative_bound() -> None:
    """A negative step bound is invalid."""

    with pytest.raises(ValueError):
        ToolLoopConfig(max_steps=-1)


def test_config_normalises_allow_list() -> None:
    """Allow-lists given as lists are stored as frozensets."""

    assert ToolLoopConfig(allowed_tools=["a", "b"]).allowed_tools == frozenset({"a", "b"})
