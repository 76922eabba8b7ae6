"""Transport ports — sender/receiver protocols implemented by adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from .envelope import Envelope


@runtime_checkable
class IEnvelopeSerializer(Protocol):
    """Port for turning envelopes into a transport body/headers pair."""

    def encode(self, envelope: Envelope) -> dict[str, Any]:
        """Return ``{"body": str, "headers": dict}`` for *envelope*."""
        ...

    def decode(self, encoded: Mapping[str, Any]) -> Envelope:
        """Rebuild an envelope from ``{"body", "headers"}``."""
        ...


@runtime_checkable
class ISender(Protocol):
    """Port for enqueueing envelopes."""

    async def send(self, envelope: Envelope) -> Envelope:
        """
        Persist *envelope* and return it stamped with its transport id.

        Args:
            envelope: Message plus stamps; a ``DelayStamp`` postpones delivery.
        """
        ...


@runtime_checkable
class IReceiver(Protocol):
    """Port for polling, acknowledging and rejecting envelopes."""

    async def get(self) -> list[Envelope]:
        """Claim at most one envelope; an empty list means nothing is available."""
        ...

    async def ack(self, envelope: Envelope) -> None:
        """Remove a successfully handled envelope."""
        ...

    async def reject(self, envelope: Envelope) -> None:
        """Remove an envelope that must not be redelivered."""
        ...


@runtime_checkable
class IListableReceiver(Protocol):
    """Port for administrative browsing of stored envelopes."""

    def all(self, batch_size: int | None = None) -> AsyncIterator[Envelope]: ...

    async def find(self, message_id: Any) -> Envelope | None: ...


@runtime_checkable
class IMessageCountAware(Protocol):
    async def count(self) -> int: ...


@runtime_checkable
class ITransport(ISender, IReceiver, Protocol):
    """A transport both sends and receives."""
