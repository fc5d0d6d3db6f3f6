"""
DAG node adapters for agents.

:class:`AgentAction` wraps a single :class:`Agent`; :class:`ToolLoopAction` runs the tool loop
directly.  Both follow the same data flow:

1. **Input**: receive every upstream value in scheduler-reported sender order and join the textual
   ones with a blank line into one prompt.
2. **Execution**: run the agent (or tool loop) on that prompt.
3. **Output**: broadcast the answer to every downstream edge.  On failure nothing is broadcast and
   the error is reported to the scheduler.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import (
    Any,
    List,
    Mapping,
    Optional,
)

from libra_ai.agent.agent import Agent
from libra_ai.agent.agent_loop import (
    ToolLoopConfig,
    run_tool_loop,
)
from libra_ai.agent.completion import CompletionModel
from libra_ai.dag.contract import (
    Action,
    InChannels,
    Output,
    OutChannels,
)
from libra_ai.tools import ToolRegistry

logger = logging.getLogger(__name__)

PROMPT_SEPARATOR = "\n\n"


class UpstreamReceiveError(RuntimeError):
    """Raised when an upstream value cannot be received."""


async def collect_upstream_prompt(in_channels: InChannels) -> str:
    """
    Receive from every upstream sender and join the textual values with a blank line.

    Non-textual values are logged and left out.  A failed receive raises
    :class:`UpstreamReceiveError`.
    """
    inputs: List[str] = []
    for sender_id in in_channels.sender_ids():
        try:
            value = await in_channels.recv_from(sender_id)
        except Exception as exc:  # noqa: BLE001
            message = f"Failed to receive input from upstream {sender_id!r}: {exc}"
            logger.error(message)
            raise UpstreamReceiveError(message) from exc

        if isinstance(value, str):
            inputs.append(value)
        else:
            logger.warning(
                "Received content from upstream %r is not a string (%s). Defaulting to empty.",
                sender_id,
                type(value).__name__,
            )
    return PROMPT_SEPARATOR.join(inputs)


class _PromptAction(Action):
    """Shared upstream collection, execution and broadcast."""

    label = "Agent"

    @abstractmethod
    async def answer(self, prompt: str) -> str:
        """Produce the node's text for *prompt*."""

    async def run(
        self,
        in_channels: InChannels,
        out_channels: OutChannels,
        env: Optional[Mapping[str, Any]] = None,
    ) -> Output:
        try:
            prompt = await collect_upstream_prompt(in_channels)
        except UpstreamReceiveError as exc:
            return Output.err(str(exc))

        try:
            text = await self.answer(prompt)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("%s execution error: %s", self.label, exc)
            return Output.err(str(exc))

        await out_channels.broadcast(text)
        return Output.out(text)


class AgentAction(_PromptAction):
    """Run a single-shot :class:`Agent` as a DAG node."""

    label = "Agent"

    def __init__(self, agent: Agent):
        self.agent = agent

    async def answer(self, prompt: str) -> str:
        return await self.agent.prompt(prompt)


class ToolLoopAction(_PromptAction):
    """Run the iterative tool loop as a DAG node."""

    label = "Agent tool loop"

    def __init__(
        self,
        model: CompletionModel,
        registry: ToolRegistry,
        preamble: str | None = None,
        temperature: float | None = None,
        max_steps: int | None = None,
        config: ToolLoopConfig | None = None,
    ):
        self.model = model
        self.registry = registry
        self.config = config or ToolLoopConfig(
            preamble=preamble, temperature=temperature, max_steps=max_steps
        )

    async def answer(self, prompt: str) -> str:
        return await run_tool_loop(self.model, prompt, self.registry, self.config)
