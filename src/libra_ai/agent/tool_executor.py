"""Dispatches backend tool calls against a :class:`ToolRegistry` and wraps errors."""

import logging
from typing import (
    Any,
    Collection,
)

from libra_ai.agent.completion import CompletionError
from libra_ai.core.schema import (
    ToolCall,
    ToolResult,
)
from libra_ai.tools import ToolRegistry

logger = logging.getLogger(__name__)


class ToolNotFoundError(CompletionError):
    """Raised when a call names a tool absent from, or not allowed in, the registry."""

    def __init__(self, name: str):
        super().__init__(f"Tool not found: {name}")
        self.name = name


class ToolExecutionError(CompletionError):
    """Raised when a tool's own call fails."""

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


def execute_tool(
    registry: ToolRegistry,
    name: str,
    args: Any = None,
    allowed: Collection[str] | None = None,
) -> Any:
    """
    Look up *name* in *registry* and invoke it with *args*.

    Parameters
    ----------
    registry:
        The registry to search.
    name:
        The registered tool name.
    args:
        Structured argument payload passed verbatim to the tool.  If *None*, an empty dict is
        assumed.
    allowed:
        Optional allow-list; a tool outside it is treated as missing.

    Returns
    -------
    Any
        Whatever the tool returns.

    Raises
    ------
    ToolNotFoundError
        If the tool is missing or excluded by *allowed*.
    ToolExecutionError
        If the invocation raises an exception.
    """

    if args is None:
        args = {}

    tool = registry.get(name, allowed)
    if tool is None:
        raise ToolNotFoundError(name)

    try:
        logger.debug("Executing tool '%s' with args=%s", name, args)
        return tool.call(args)
    except TypeError as exc:
        # Argument mismatch: give the caller a clean exception.
        logger.exception("Argument error while executing tool '%s'", name)
        raise ToolExecutionError(name, f"Invalid arguments for tool '{name}': {exc}") from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Unhandled error in tool '%s'", name)
        raise ToolExecutionError(name, f"Tool '{name}' raised an error: {exc}") from exc


def execute_tool_call(
    registry: ToolRegistry, call: ToolCall, allowed: Collection[str] | None = None
) -> ToolResult:
    """Run *call* and wrap its value in a :class:`ToolResult` carrying the same id and name."""
    result = execute_tool(registry, call.name, call.arguments, allowed)
    return ToolResult(id=call.id, name=call.name, result=result)
