"""
Node contract expected by the external DAG scheduler.

The scheduler owns the graph, the channels and the execution order.  A node receives its inbound
channels (one per upstream edge, identified by sender id), its outbound channels, and an optional
read-only environment, and returns an :class:`Output`.  A failed node returns ``Output.err`` and
broadcasts nothing.
"""

from __future__ import annotations

from abc import (
    ABC,
    abstractmethod,
)
from dataclasses import dataclass
from typing import (
    Any,
    Hashable,
    List,
    Mapping,
    Optional,
    Protocol,
)

NodeId = Hashable


class ChannelError(RuntimeError):
    """Raised by a channel when a value cannot be received from a sender."""


class InChannels(Protocol):
    """Inbound side of a node, as provided by the scheduler."""

    def sender_ids(self) -> List[NodeId]:
        """Upstream node ids, in the order the scheduler reports them."""

    async def recv_from(self, sender_id: NodeId) -> Any:
        """Receive the value sent by *sender_id*; raise :class:`ChannelError` on failure."""


class OutChannels(Protocol):
    """Outbound side of a node, as provided by the scheduler."""

    async def broadcast(self, value: Any) -> None:
        """Send *value* to every downstream edge."""


@dataclass(frozen=True)
class Output:
    """Result reported back to the scheduler."""

    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def out(cls, value: Any = None) -> "Output":
        return cls(value=value)

    @classmethod
    def err(cls, message: str) -> "Output":
        return cls(error=message)


class Action(ABC):
    """An executable DAG node."""

    @abstractmethod
    async def run(
        self,
        in_channels: InChannels,
        out_channels: OutChannels,
        env: Optional[Mapping[str, Any]] = None,
    ) -> Output:
        """Execute the node once."""
