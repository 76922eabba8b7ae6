"""Envelope — immutable wrapper pairing a message with its stamps."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from .stamps import Stamp

TStamp = TypeVar("TStamp", bound=Stamp)


class Envelope(BaseModel):
    """Immutable wrapper for messages handed to and returned by transports.

    Stamps are kept in the order they were added; ``last()`` returns the most
    recent stamp of a type. Every ``with_stamps``/``without_stamps`` call
    returns a new envelope.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    message: Any
    stamps: tuple[Stamp, ...] = ()

    @classmethod
    def wrap(cls, message: Any, stamps: tuple[Stamp, ...] = ()) -> Envelope:
        """Wrap *message*; an existing envelope just receives the extra stamps."""
        if isinstance(message, Envelope):
            return message.with_stamps(*stamps)
        return cls(message=message, stamps=tuple(stamps))

    def with_stamps(self, *stamps: Stamp) -> Envelope:
        return self.model_copy(update={"stamps": (*self.stamps, *stamps)})

    def without_stamps(self, stamp_type: type[Stamp]) -> Envelope:
        """Drop every stamp of *stamp_type* (subclasses included)."""
        kept = tuple(s for s in self.stamps if not isinstance(s, stamp_type))
        return self.model_copy(update={"stamps": kept})

    def last(self, stamp_type: type[TStamp]) -> TStamp | None:
        for stamp in reversed(self.stamps):
            if isinstance(stamp, stamp_type):
                return stamp
        return None

    def all_stamps(self, stamp_type: type[TStamp] | None = None) -> list[Any]:
        """Return stamps of *stamp_type*, or every stamp when it is omitted."""
        if stamp_type is None:
            return list(self.stamps)
        return [s for s in self.stamps if isinstance(s, stamp_type)]

    @property
    def message_type(self) -> str:
        return type(self.message).__name__
