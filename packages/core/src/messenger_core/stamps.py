"""Stamps — immutable metadata attached to an envelope."""

from __future__ import annotations

from datetime import timedelta
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class Stamp(BaseModel):
    """Base class for envelope stamps.

    Sendable stamps are written to the ``X-Message-Stamp-<name>`` headers by
    the serializer; non-sendable stamps only live in memory.
    """

    model_config = ConfigDict(frozen=True)

    sendable: ClassVar[bool] = True

    @classmethod
    def stamp_name(cls) -> str:
        """Name used in the stamp header and the stamp registry."""
        return cls.__name__


class DelayStamp(Stamp):
    """Postpones delivery by ``delay`` milliseconds."""

    delay: int = Field(..., description="Delay in milliseconds")

    @classmethod
    def delay_for(cls, interval: timedelta) -> DelayStamp:
        return cls(delay=int(interval.total_seconds() * 1000))

    @property
    def interval(self) -> timedelta:
        return timedelta(milliseconds=self.delay)


class TransportMessageIdStamp(Stamp):
    """Identifies the stored document backing an envelope.

    Added by the transport on send and on get; never serialized.
    """

    sendable: ClassVar[bool] = False

    id: str
