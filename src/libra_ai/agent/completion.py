"""
Completion contract for the agent core.

A backend is anything that turns a :class:`CompletionRequest` into a :class:`CompletionResponse` in
one awaitable round-trip.  The tool loop never assumes retries, batching or streaming from it, and
no concrete network backend lives here.

Backends can be registered under a model-preference label (``"default"``, ``"fast"``, ...) with
:func:`register_model` so that an agent profile's ``model`` field can be resolved with
:func:`load_model`.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Callable,
    Dict,
    Type,
)

from libra_ai.config import settings
from libra_ai.core.schema import (
    CompletionRequest,
    CompletionResponse,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
class CompletionError(RuntimeError):
    """Base class for every fatal error raised while answering a prompt."""


class BackendError(CompletionError):
    """Raised when the completion backend itself fails."""


class UnusableResponseError(CompletionError):
    """Raised when a response carries no usable text and no actionable tool call."""


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class CompletionModel(ABC):
    """Abstract completion backend."""

    @abstractmethod
    async def completion(self, request: CompletionRequest) -> CompletionResponse:
        """Answer *request*, or raise :class:`CompletionError`."""


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_MODEL_REGISTRY: Dict[str, Callable[[], CompletionModel]] = {}


def register_model(label: str) -> Callable:
    """Decorator to register a backend factory (usually a class) under *label*."""

    def wrapper(factory: Type[CompletionModel]) -> Type[CompletionModel]:
        key = label.lower()
        if key in _MODEL_REGISTRY:
            raise ValueError(f"Model '{label}' is already registered.")
        logger.debug("Registering model '%s'", key)
        _MODEL_REGISTRY[key] = factory
        return factory

    return wrapper


def unregister_model(label: str) -> None:
    """Remove *label* from the registry if present."""
    _MODEL_REGISTRY.pop(label.lower(), None)


def registered_models() -> list[str]:
    """Return the registered labels in registration order."""
    return list(_MODEL_REGISTRY)


def load_model(label: str | None = None) -> CompletionModel:
    """
    Factory that returns an instantiated backend.

    Fallback order:
    1. *label* arg
    2. ``settings.DEFAULT_MODEL``
    """

    target = label or settings.DEFAULT_MODEL
    factory = _MODEL_REGISTRY.get(target.lower())
    if factory is None:
        raise ValueError(f"Model '{target}' is not registered.")
    return factory()
