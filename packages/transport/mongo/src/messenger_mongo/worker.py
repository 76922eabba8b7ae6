"""MessengerWorker: polling loop that hands claimed messages to a handler."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from messenger_core.stamps import TransportMessageIdStamp

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from messenger_core.envelope import Envelope
    from messenger_core.ports import IReceiver

logger = logging.getLogger("messenger.mongo.worker")


class MessengerWorker:
    """Poll a receiver and dispatch each claimed message to *handler*.

    Successful handling acks the envelope; a handler exception is logged and
    the envelope is rejected. Messages whose handler never finishes (crash,
    cancellation) are redelivered once their lease expires.
    """

    def __init__(
        self,
        receiver: IReceiver,
        handler: Callable[[Any], Coroutine[Any, Any, None]],
        *,
        poll_interval: float = 1.0,
    ) -> None:
        """Configure worker.

        Args:
            receiver: Transport to poll.
            handler: Async callable invoked with each message.
            poll_interval: Seconds to sleep after an empty poll.
        """
        if poll_interval < 0:
            raise ValueError("poll_interval must be >= 0")
        self._receiver = receiver
        self._handler = handler
        self._poll_interval = poll_interval
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._stop_requested = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._running

    async def process_next(self) -> bool:
        """Claim and handle at most one message. Returns False on an empty poll."""
        envelopes = await self._receiver.get()
        for envelope in envelopes:
            await self._dispatch(envelope)
        return bool(envelopes)

    async def _dispatch(self, envelope: Envelope) -> None:
        stamp = envelope.last(TransportMessageIdStamp)
        message_id = stamp.id if stamp is not None else None
        try:
            await self._handler(envelope.message)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Handler failed for %s message %s; rejecting",
                envelope.message_type,
                message_id,
            )
            await self._receiver.reject(envelope)
            return
        await self._receiver.ack(envelope)

    async def run(self, *, stop_when_empty: bool = False) -> None:
        """Poll until ``stop()`` is called (or the queue is drained)."""
        self._arm()
        await self._loop(stop_when_empty)

    def _arm(self) -> None:
        self._running = True
        self._stop_requested.clear()

    async def _loop(self, stop_when_empty: bool) -> None:
        try:
            while self._running:
                if await self.process_next():
                    continue
                if stop_when_empty:
                    break
                await self._idle()
        finally:
            self._running = False

    async def _idle(self) -> None:
        """Sleep for ``poll_interval`` or until ``stop()`` is called."""
        try:
            await asyncio.wait_for(
                self._stop_requested.wait(), timeout=self._poll_interval
            )
        except asyncio.TimeoutError:
            pass

    async def start(self) -> None:
        """Run the polling loop as a background task."""
        if self._task is not None:
            if not self._task.done():
                return
            self._collect(self._task)
        self._arm()
        self._task = asyncio.create_task(self._loop(stop_when_empty=False))

    async def stop(self) -> None:
        """Stop the loop and wait for the in-flight message to finish."""
        self._running = False
        self._stop_requested.set()
        if self._task is not None:
            task, self._task = self._task, None
            await task

    @staticmethod
    def _collect(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Previous worker run failed", exc_info=exc)
