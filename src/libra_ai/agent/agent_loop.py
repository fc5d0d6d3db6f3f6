"""
Bounded tool-calling loop.

One invocation owns its chat history.  Each round sends the history to the backend (the only
suspension point), then runs every requested tool synchronously and in call order, appending the
assistant turn and a single user turn holding one result per call.  The loop ends with the joined
text of the first response that requests no tools, or with a :class:`CompletionError`; no partial
text is ever returned alongside an error.
"""

from __future__ import annotations

import logging
from dataclasses import (
    dataclass,
    field,
)
from typing import (
    FrozenSet,
    Iterable,
    List,
    Sequence,
)

from libra_ai.agent.completion import (
    BackendError,
    CompletionError,
    CompletionModel,
    UnusableResponseError,
)
from libra_ai.agent.tool_executor import execute_tool_call
from libra_ai.core.schema import (
    AssistantMessage,
    CompletionRequest,
    CompletionResponse,
    Message,
    ToolCall,
    ToolResult,
    UserMessage,
    text_of,
    tool_calls_of,
)
from libra_ai.tools import ToolRegistry

logger = logging.getLogger(__name__)


class MaxStepsExceededError(CompletionError):
    """Raised when the backend keeps requesting tools past the configured step bound."""

    def __init__(self, max_steps: int):
        super().__init__(f"Tool calling exceeded max steps ({max_steps})")
        self.max_steps = max_steps


# ---------------------------------------------------------------------------
# Configuration & instrumentation
# ---------------------------------------------------------------------------
class ToolLoopObserver:
    """
    Instrumentation hooks.  Subclass and override what you need.

    Observers only watch: an exception raised by a hook is logged and otherwise ignored.
    """

    def on_round_start(self, step: int, request: CompletionRequest) -> None:
        """Called before each backend round-trip."""

    def on_tool_dispatched(self, step: int, call: ToolCall) -> None:
        """Called right before a tool call is executed."""

    def on_round_completed(self, step: int, results: Sequence[ToolResult]) -> None:
        """Called after all tool results of a round have been appended."""


@dataclass(frozen=True)
class ToolLoopConfig:
    """Per-invocation settings of the tool loop."""

    preamble: str | None = None
    temperature: float | None = None
    max_steps: int | None = None  # None = unbounded
    allowed_tools: FrozenSet[str] | None = None  # None = every registry tool
    observer: ToolLoopObserver | None = None

    def __post_init__(self) -> None:
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError("max_steps must be >= 0")
        if self.allowed_tools is not None and not isinstance(self.allowed_tools, frozenset):
            object.__setattr__(self, "allowed_tools", frozenset(self.allowed_tools))


@dataclass
class ToolLoopOutcome:
    """Final answer plus the full transcript, including the final assistant message."""

    text: str
    history: List[Message] = field(default_factory=list)


def _notify(observer: ToolLoopObserver | None, hook: str, *args: object) -> None:
    if observer is None:
        return
    try:
        getattr(observer, hook)(*args)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Tool loop observer hook '%s' failed", hook)


# ---------------------------------------------------------------------------
# Loop
# ---------------------------------------------------------------------------
async def _complete(model: CompletionModel, request: CompletionRequest) -> CompletionResponse:
    try:
        return await model.completion(request)
    except CompletionError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.error("Completion backend error: %s", exc)
        raise BackendError(f"Completion backend failed: {exc}") from exc


async def run_tool_loop_with_history(
    model: CompletionModel,
    history: Iterable[Message],
    registry: ToolRegistry,
    config: ToolLoopConfig | None = None,
) -> ToolLoopOutcome:
    """
    Drive *model* until it answers without requesting tools.

    *history* is copied; the caller's sequence is never mutated.

    Raises
    ------
    BackendError
        The backend failed.
    UnusableResponseError
        A response had neither text nor tool calls.
    ToolNotFoundError
        A call named a tool that is not advertised.
    ToolExecutionError
        A tool raised.
    MaxStepsExceededError
        More tool-calling rounds than ``config.max_steps``.
    """
    config = config or ToolLoopConfig()
    chat_history: List[Message] = list(history)
    allowed = config.allowed_tools
    tools = registry.definitions(allowed)
    steps = 0

    while True:
        request = CompletionRequest(
            preamble=config.preamble,
            chat_history=list(chat_history),
            temperature=config.temperature,
            tools=tools,
        )
        logger.debug("Tool loop round %d: %d messages in history", steps + 1, len(chat_history))
        _notify(config.observer, "on_round_start", steps + 1, request)

        response = await _complete(model, request)
        tool_calls = tool_calls_of(response.content)

        if not tool_calls:
            texts = text_of(response.content)
            if not texts:
                if response.content:
                    raise UnusableResponseError(
                        "Response carries no usable text or actionable tool call"
                    )
                raise UnusableResponseError("Response content is empty")
            chat_history.append(AssistantMessage(content=list(response.content)))
            return ToolLoopOutcome(text="\n".join(texts), history=chat_history)

        steps += 1
        if config.max_steps is not None and steps > config.max_steps:
            logger.warning("Tool loop exceeded max steps (%d)", config.max_steps)
            raise MaxStepsExceededError(config.max_steps)

        chat_history.append(AssistantMessage(content=list(response.content)))

        results: List[ToolResult] = []
        for call in tool_calls:
            logger.debug("Dispatching tool '%s' (call id %s)", call.name, call.id)
            _notify(config.observer, "on_tool_dispatched", steps, call)
            results.append(execute_tool_call(registry, call, allowed))

        chat_history.append(UserMessage(content=results))
        logger.debug("Tool loop round %d completed with %d tool results", steps, len(results))
        _notify(config.observer, "on_round_completed", steps, results)


async def run_tool_loop(
    model: CompletionModel,
    prompt: str,
    registry: ToolRegistry,
    config: ToolLoopConfig | None = None,
) -> str:
    """Run the loop on a fresh single-message history and return the final text."""
    outcome = await run_tool_loop_with_history(
        model, [UserMessage.from_text(prompt)], registry, config
    )
    return outcome.text
