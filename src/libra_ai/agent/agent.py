"""
Agents built on top of the tool loop.

:class:`Agent` is stateless: it pairs a backend with a preamble, sampling settings and a tool
registry, and answers either a fresh prompt or a prompt appended to caller-supplied history.
:class:`ChatAgent` wraps an agent and keeps the transcript between calls.
"""

from __future__ import annotations

import logging
from typing import (
    Collection,
    Iterable,
    List,
)

from libra_ai.agent.agent_loop import (
    ToolLoopConfig,
    ToolLoopObserver,
    ToolLoopOutcome,
    run_tool_loop_with_history,
)
from libra_ai.agent.completion import (
    CompletionModel,
    load_model,
)
from libra_ai.core.schema import (
    Message,
    UserMessage,
)
from libra_ai.profile.parser import AgentProfile
from libra_ai.tools import ToolRegistry

logger = logging.getLogger(__name__)


class Agent:
    """A configured backend + preamble + tool registry.  Holds no conversation state."""

    def __init__(
        self,
        model: CompletionModel,
        registry: ToolRegistry | None = None,
        config: ToolLoopConfig | None = None,
    ):
        self.model = model
        self.registry = registry if registry is not None else ToolRegistry()
        self.config = config or ToolLoopConfig()

    @classmethod
    def from_profile(
        cls,
        profile: AgentProfile,
        registry: ToolRegistry,
        model: CompletionModel | None = None,
        temperature: float | None = None,
        max_steps: int | None = None,
    ) -> "Agent":
        """
        Build an agent for *profile*.

        The profile's system prompt becomes the preamble and its tool list the allow-list.  When
        *model* is omitted it is resolved by the profile's model preference.
        """
        if model is None:
            model = load_model(profile.model_preference)
        missing = [name for name in profile.tools if name not in registry]
        if missing:
            logger.warning("Profile '%s' lists unregistered tools: %s", profile.name, missing)
        config = ToolLoopConfig(
            preamble=profile.system_prompt or None,
            temperature=temperature,
            max_steps=max_steps,
            allowed_tools=frozenset(profile.tools),
        )
        return cls(model, registry, config)

    async def run(self, history: Iterable[Message]) -> ToolLoopOutcome:
        """Run the tool loop over *history* and return text plus transcript."""
        return await run_tool_loop_with_history(self.model, history, self.registry, self.config)

    async def prompt(self, text: str) -> str:
        """Answer *text* starting from an empty history."""
        outcome = await self.run([UserMessage.from_text(text)])
        return outcome.text

    async def chat(self, text: str, history: Iterable[Message]) -> str:
        """Answer *text* appended to *history*.  The caller's history is left untouched."""
        outcome = await self.run([*history, UserMessage.from_text(text)])
        return outcome.text


class AgentBuilder:
    """Fluent construction of an :class:`Agent`."""

    def __init__(self, model: CompletionModel):
        self._model = model
        self._preamble: str | None = None
        self._temperature: float | None = None
        self._max_steps: int | None = None
        self._registry: ToolRegistry | None = None
        self._allowed: frozenset[str] | None = None
        self._observer: ToolLoopObserver | None = None

    def preamble(self, preamble: str) -> "AgentBuilder":
        self._preamble = preamble
        return self

    def temperature(self, temperature: float) -> "AgentBuilder":
        self._temperature = temperature
        return self

    def max_steps(self, max_steps: int) -> "AgentBuilder":
        self._max_steps = max_steps
        return self

    def tools(self, registry: ToolRegistry) -> "AgentBuilder":
        self._registry = registry
        return self

    def allowed_tools(self, names: Collection[str]) -> "AgentBuilder":
        self._allowed = frozenset(names)
        return self

    def observer(self, observer: ToolLoopObserver) -> "AgentBuilder":
        self._observer = observer
        return self

    def build(self) -> Agent:
        config = ToolLoopConfig(
            preamble=self._preamble,
            temperature=self._temperature,
            max_steps=self._max_steps,
            allowed_tools=self._allowed,
            observer=self._observer,
        )
        return Agent(self._model, self._registry, config)


class ChatAgent:
    """
    Stateful wrapper that remembers the conversation.

    A failed turn leaves the stored history as it was before the call.
    """

    def __init__(self, agent: Agent, history: Iterable[Message] = ()):
        self.agent = agent
        self._history: List[Message] = list(history)

    @property
    def history(self) -> List[Message]:
        return list(self._history)

    async def chat(self, text: str) -> str:
        outcome = await self.agent.run([*self._history, UserMessage.from_text(text)])
        self._history = outcome.history
        return outcome.text

    def reset(self) -> None:
        self._history.clear()
