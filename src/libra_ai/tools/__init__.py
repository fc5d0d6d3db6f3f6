"""
Tool registry for the agent core.

A tool is a named, schema-described, synchronous capability.  Tools are collected in an ordered
:class:`ToolRegistry` and looked up by exact name.  Plain functions become tools through
:class:`FunctionTool` or the :func:`register_tool` decorator, which derives a JSON-Schema parameter
object from the function signature.
"""

import inspect
import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    Collection,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    get_type_hints,
)

from libra_ai.core.schema import ToolDefinition

logger = logging.getLogger(__name__)

_JSON_TYPES: Dict[type, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    tuple: "array",
    dict: "object",
}


# ---------------------------------------------------------------------------
# Tool contract
# ---------------------------------------------------------------------------
class Tool(ABC):
    """A synchronous capability the backend may invoke mid-conversation."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name within a registry."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human description advertised to the backend."""

    def definition(self) -> ToolDefinition:
        """Return the definition advertised to the backend."""
        return ToolDefinition(name=self.name, description=self.description)

    @abstractmethod
    def call(self, args: Any) -> Any:
        """Run the tool with the structured *args* payload and return a structured value."""


class FunctionTool(Tool):
    """Expose a plain Python function as a :class:`Tool`."""

    def __init__(self, fn: Callable[..., Any], name: str | None = None, description: str | None = None):
        self._fn = fn
        self._name = name or fn.__name__
        self._description = description if description is not None else inspect.getdoc(fn) or ""
        self._parameters = function_parameters(fn)

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self._name, description=self._description, parameters=self._parameters
        )

    def call(self, args: Any) -> Any:
        """Invoke the function with *args* as keyword arguments (``None`` means no arguments)."""
        if args is None:
            args = {}
        if not isinstance(args, Mapping):
            raise TypeError(f"expected an object of keyword arguments, got {type(args).__name__}")
        return self._fn(**args)

    def __repr__(self) -> str:
        return f"FunctionTool(name={self._name!r})"


def function_parameters(fn: Callable[..., Any]) -> Dict[str, Any]:
    """Derive a JSON-Schema ``object`` describing the parameters of *fn*."""
    sig = inspect.signature(fn)
    type_hints = get_type_hints(fn)
    properties: Dict[str, Any] = {}
    required: List[str] = []
    for param_name, param in sig.parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        hint = type_hints.get(param_name)
        origin = getattr(hint, "__origin__", hint)
        json_type = _JSON_TYPES.get(origin) if isinstance(origin, type) else None
        properties[param_name] = {"type": json_type} if json_type else {}
        if param.default is inspect.Parameter.empty:
            required.append(param_name)
    schema: Dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
class ToolRegistry:
    """
    Ordered collection of tools, looked up by exact name.

    Registries are filled once and then shared read-only between invocations.  Registering a second
    tool under an existing name is a configuration error.
    """

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: List[Tool] = []
        for tool in tools:
            self.add(tool)

    def add(self, tool: Tool) -> Tool:
        """Append *tool*; raise :class:`ValueError` if its name is taken."""
        if tool.name in self:
            raise ValueError(f"Tool '{tool.name}' is already registered.")
        logger.debug("Registering tool '%s'", tool.name)
        self._tools.append(tool)
        return tool

    def register(self, name: str | None = None) -> Callable:
        """
        Register a function as a tool in this registry.

        Used as a decorator:
            @registry.register("my_tool")
            def my_tool_function(arg1: str, arg2: int) -> str:
                ...
        """

        def wrapper(fn: Callable) -> Callable:
            self.add(FunctionTool(fn, name=name))
            return fn

        return wrapper

    def get(self, name: str, allowed: Collection[str] | None = None) -> Tool | None:
        """Return the first tool named *name*, or ``None`` if absent or not in *allowed*."""
        if allowed is not None and name not in allowed:
            return None
        for tool in self._tools:
            if tool.name == name:
                return tool
        return None

    def advertised(self, allowed: Collection[str] | None = None) -> List[Tool]:
        """Return the tools visible under the *allowed* list (all tools if ``None``)."""
        if allowed is None:
            return list(self._tools)
        return [tool for tool in self._tools if tool.name in allowed]

    def definitions(self, allowed: Collection[str] | None = None) -> List[ToolDefinition]:
        """Return the definitions of the advertised tools, in registry order."""
        return [tool.definition() for tool in self.advertised(allowed)]

    def names(self) -> List[str]:
        return [tool.name for tool in self._tools]

    def __contains__(self, name: object) -> bool:
        return any(tool.name == name for tool in self._tools)

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools))

    def __len__(self) -> int:
        return len(self._tools)


TOOL_REGISTRY = ToolRegistry()
"""Process-wide default registry."""


def register_tool(name: str) -> Callable:
    """
    Register a tool function in :data:`TOOL_REGISTRY` under *name*.

    The function must accept keyword arguments and return a value.  If a tool with the same name is
    already registered, a ValueError is raised.
    """
    return TOOL_REGISTRY.register(name)


@register_tool("echo")
def echo_tool(text: str) -> str:
    """Echo the input text back to the caller."""
    return text
