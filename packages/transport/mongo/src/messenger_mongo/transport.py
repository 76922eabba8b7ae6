"""
MongoDB implementation of the message transport.

Messages are leased with a single atomic ``find_one_and_update``: the oldest
available document in the queue gets this consumer's id and an
``available_at`` pushed forward by the redeliver timeout. A consumer that
crashes before ack/reject simply lets the lease run out; the message is then
claimable again.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping
from datetime import datetime, timedelta
from typing import Any

from pymongo import ASCENDING, ReturnDocument
from pymongo.write_concern import WriteConcern

from messenger_core.envelope import Envelope
from messenger_core.exceptions import (
    MalformedDocumentError,
    MessagingSerializationError,
    MissingTransportIdError,
)
from messenger_core.ports import IListableReceiver, IMessageCountAware, ITransport
from messenger_core.stamps import DelayStamp, TransportMessageIdStamp

from .config import MongoTransportOptions
from .document import MessageDocument, bson_datetime, to_object_id, utcnow
from .indexes import ensure_transport_indexes

logger = logging.getLogger("messenger.mongo.transport")


class MongoTransport(ITransport, IListableReceiver, IMessageCountAware):
    """
    Transport storing envelopes as documents of one MongoDB collection.

    Several transports may share a collection; each must be created with its
    own ``consumer_id``. Claims are filtered by the configured queue.
    """

    def __init__(
        self,
        collection: Any,
        serializer: Any,
        consumer_id: str,
        options: MongoTransportOptions | Mapping[str, Any] | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            collection: Motor collection holding the message documents.
            serializer: Envelope codec (``encode``/``decode``).
            consumer_id: Identifier of this consumer instance; must be unique.
            options: ``MongoTransportOptions`` or a mapping of option values.
            clock: Optional time source, defaults to the current UTC time.
        """
        self._collection = collection
        self._serializer = serializer
        self._consumer_id = consumer_id
        self._options = MongoTransportOptions.build(options)
        self._clock = clock or utcnow
        self._claim_collection: Any = None

    @property
    def consumer_id(self) -> str:
        return self._consumer_id

    @property
    def options(self) -> MongoTransportOptions:
        return self._options

    def _now(self) -> datetime:
        return bson_datetime(self._clock())

    def _queue_filter(self) -> dict[str, Any]:
        if self._options.queue is None:
            return {}
        return {"queue_name": self._options.queue}

    def _claim_target(self) -> Any:
        if not self._options.enable_write_majority:
            return self._collection
        if self._claim_collection is None:
            self._claim_collection = self._collection.with_options(
                write_concern=WriteConcern(w="majority")
            )
        return self._claim_collection

    async def send(self, envelope: Envelope) -> Envelope:
        """Store *envelope* and return it stamped with the new document id."""
        encoded = self._serializer.encode(envelope)
        delay_stamp = envelope.last(DelayStamp)
        delay = delay_stamp.interval if delay_stamp is not None else timedelta(0)
        now = self._now()

        document = MessageDocument(
            body=encoded["body"],
            headers=dict(encoded.get("headers") or {}),
            queue_name=self._options.queue,
            created_at=now,
            available_at=now + delay,
        )
        result = await self._collection.insert_one(document.to_document())
        message_id = str(result.inserted_id)
        logger.debug(
            "Sent message %s to queue %r (delay=%s)",
            message_id,
            self._options.queue,
            delay,
        )
        return envelope.with_stamps(TransportMessageIdStamp(id=message_id))

    async def get(self) -> list[Envelope]:
        """Atomically claim the oldest available message.

        Returns a list holding zero or one envelope.
        """
        now = self._now()
        query = {**self._queue_filter(), "available_at": {"$lte": now}}
        doc = await self._claim_target().find_one_and_update(
            query,
            {
                "$set": {
                    "consumer_id": self._consumer_id,
                    "available_at": now + self._options.redeliver_delta,
                    "delivered_at": now,
                }
            },
            sort=[("available_at", ASCENDING), ("_id", ASCENDING)],
            return_document=ReturnDocument.AFTER,
        )
        if not isinstance(doc, Mapping):
            return []

        # The claim filter does not prove ownership; the stored consumer_id does.
        if doc.get("consumer_id") != self._consumer_id:
            logger.warning(
                "Claimed document %s is owned by %r, not %r; skipping",
                doc.get("_id"),
                doc.get("consumer_id"),
                self._consumer_id,
            )
            return []

        try:
            envelope = self._to_envelope(doc)
        except MessagingSerializationError:
            logger.warning(
                "Claimed document %s could not be decoded",
                doc.get("_id"),
                exc_info=True,
            )
            return []
        logger.debug("Claimed message %s as %r", doc.get("_id"), self._consumer_id)
        return [envelope]

    async def ack(self, envelope: Envelope) -> None:
        await self._delete(envelope, "ack")

    async def reject(self, envelope: Envelope) -> None:
        await self._delete(envelope, "reject")

    async def keepalive(self, envelope: Envelope, seconds: float | None = None) -> None:
        """Extend the lease this consumer holds on *envelope*.

        Args:
            envelope: Envelope returned by ``get()``.
            seconds: New lease length from now; defaults to the redeliver timeout.
        """
        message_id = self._require_id(envelope, "keepalive")
        lease = (
            timedelta(seconds=seconds)
            if seconds is not None
            else self._options.redeliver_delta
        )
        await self._collection.update_one(
            {"_id": to_object_id(message_id), "consumer_id": self._consumer_id},
            {"$set": {"available_at": self._now() + lease}},
        )

    async def find(self, message_id: Any) -> Envelope | None:
        """Return the stored envelope with *message_id*, leased or not."""
        doc = await self._collection.find_one({"_id": to_object_id(message_id)})
        if doc is None:
            return None
        return self._to_envelope(doc)

    async def all(self, batch_size: int | None = None) -> AsyncIterator[Envelope]:
        """Iterate over every stored envelope, regardless of queue or lease.

        Args:
            batch_size: Cursor batch size hint; does not limit the result.
        """
        cursor = self._collection.find(
            {},
            sort=[("_id", ASCENDING)],
            batch_size=batch_size or 0,
        )
        async for doc in cursor:
            yield self._to_envelope(doc)

    async def count(self) -> int:
        query = self._queue_filter() if self._options.count_queue_only else {}
        return int(await self._collection.count_documents(query))

    async def setup(self) -> None:
        """Create the indexes used by the claim query."""
        await ensure_transport_indexes(self._collection)

    async def _delete(self, envelope: Envelope, operation: str) -> None:
        message_id = self._require_id(envelope, operation)
        await self._collection.delete_one({"_id": to_object_id(message_id)})
        logger.debug("Deleted message %s on %s", message_id, operation)

    @staticmethod
    def _require_id(envelope: Envelope, operation: str) -> str:
        stamp = envelope.last(TransportMessageIdStamp)
        if stamp is None:
            raise MissingTransportIdError(operation)
        return stamp.id

    def _to_envelope(self, doc: Mapping[str, Any]) -> Envelope:
        document = MessageDocument.from_document(doc)
        try:
            envelope = self._serializer.decode(document.encoded())
        except MessagingSerializationError as e:
            raise MalformedDocumentError(str(e), document.id) from e
        return envelope.with_stamps(TransportMessageIdStamp(id=str(document.id)))
