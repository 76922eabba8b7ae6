"""MessageDocument — the persisted unit of the Mongo transport.

Stored in the transport collection with the schema::

    {
        "_id": ObjectId,
        "body": str,
        "headers": str,          # JSON-encoded mapping
        "queue_name": str | None,
        "created_at": datetime,
        "available_at": datetime,
        "consumer_id": str | None,
        "delivered_at": datetime | None
    }

Headers are stored JSON-encoded because stamp header names may contain
characters that are not valid in BSON field names.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from messenger_core.exceptions import MalformedDocumentError


def bson_datetime(value: datetime) -> datetime:
    """Normalise *value* to what MongoDB stores: naive UTC, millisecond precision."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def utcnow() -> datetime:
    return bson_datetime(datetime.now(timezone.utc))


def to_object_id(value: Any) -> Any:
    """Return an ObjectId for ObjectId-shaped strings; other values pass through."""
    if isinstance(value, str):
        try:
            return ObjectId(value)
        except InvalidId:
            return value
    return value


@dataclass
class MessageDocument:
    """A message as stored by the transport."""

    body: str
    headers: dict[str, Any] = field(default_factory=dict)
    queue_name: str | None = None
    created_at: datetime | None = None
    available_at: datetime | None = None
    consumer_id: str | None = None
    delivered_at: datetime | None = None
    id: Any = None

    def to_document(self) -> dict[str, Any]:
        """Return a BSON-ready dict; ``_id`` is omitted until the store assigns one."""
        doc: dict[str, Any] = {
            "body": self.body,
            "headers": json.dumps(self.headers),
            "queue_name": self.queue_name,
            "created_at": self.created_at,
            "available_at": self.available_at,
            "consumer_id": self.consumer_id,
            "delivered_at": self.delivered_at,
        }
        if self.id is not None:
            doc["_id"] = self.id
        return doc

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> MessageDocument:
        """Build a record from a stored document.

        Raises:
            MalformedDocumentError: missing body or unreadable headers.
        """
        if not isinstance(doc, Mapping):
            raise MalformedDocumentError("Document must be a mapping")
        document_id = doc.get("_id")
        body = doc.get("body")
        if not isinstance(body, str):
            raise MalformedDocumentError("Document has no body", document_id)
        headers = doc.get("headers") or {}
        if isinstance(headers, str):
            try:
                headers = json.loads(headers)
            except ValueError as e:
                raise MalformedDocumentError(
                    f"Document headers are not valid JSON: {e}", document_id
                ) from e
        if not isinstance(headers, Mapping):
            raise MalformedDocumentError(
                "Document headers must be a mapping", document_id
            )
        return cls(
            id=document_id,
            body=body,
            headers=dict(headers),
            queue_name=doc.get("queue_name"),
            created_at=doc.get("created_at"),
            available_at=doc.get("available_at"),
            consumer_id=doc.get("consumer_id"),
            delivered_at=doc.get("delivered_at"),
        )

    def encoded(self) -> dict[str, Any]:
        """The ``{"body", "headers"}`` pair understood by the serializer."""
        return {"body": self.body, "headers": self.headers}
