"""EnvelopeSerializer — JSON body plus headers, with registry hydration."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from .envelope import Envelope
from .exceptions import MessagingSerializationError
from .registry import MessageTypeRegistry
from .stamps import Stamp

STAMP_HEADER_PREFIX = "X-Message-Stamp-"
CONTENT_TYPE = "application/json"


class EnvelopeSerializer:
    """Encode an envelope to ``{"body": str, "headers": dict}`` and back.

    ``body`` is the JSON form of the message; ``headers`` carries the message
    ``type``, the ``Content-Type`` and one ``X-Message-Stamp-<name>`` entry per
    sendable stamp type (a JSON list of the stamps of that type).
    """

    def __init__(self, registry: MessageTypeRegistry | None = None) -> None:
        """Optionally pass a shared MessageTypeRegistry."""
        self._registry = registry or MessageTypeRegistry()

    @property
    def registry(self) -> MessageTypeRegistry:
        return self._registry

    def encode(self, envelope: Envelope) -> dict[str, Any]:
        message = envelope.message
        if not isinstance(message, BaseModel):
            raise MessagingSerializationError(
                f"Cannot encode message of type {type(message).__name__}; "
                "messages must be pydantic models"
            )
        try:
            body = message.model_dump_json()
            headers: dict[str, str] = {
                "type": self._registry.name_for(type(message))
            }
            headers.update(self._encode_stamps(envelope))
        except (TypeError, ValueError) as e:
            raise MessagingSerializationError(str(e)) from e
        headers["Content-Type"] = CONTENT_TYPE
        return {"body": body, "headers": headers}

    def decode(self, encoded: Mapping[str, Any]) -> Envelope:
        body = encoded.get("body")
        headers = self._decode_headers(encoded.get("headers"))
        if body is None:
            raise MessagingSerializationError("Encoded envelope should have a body")
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        type_name = headers.get("type")
        if not type_name:
            raise MessagingSerializationError(
                'Encoded envelope does not have a "type" header'
            )
        message_class = self._registry.resolve(type_name)
        try:
            message = message_class.model_validate_json(body)
        except (TypeError, ValueError) as e:
            raise MessagingSerializationError(str(e)) from e
        return Envelope(message=message, stamps=self._decode_stamps(headers))

    def _encode_stamps(self, envelope: Envelope) -> dict[str, str]:
        grouped: dict[str, list[dict[str, Any]]] = {}
        for stamp in envelope.stamps:
            if not stamp.sendable:
                continue
            stamp_name = self._registry.stamp_name_for(type(stamp))
            grouped.setdefault(stamp_name, []).append(stamp.model_dump(mode="json"))
        return {
            f"{STAMP_HEADER_PREFIX}{name}": json.dumps(values)
            for name, values in grouped.items()
        }

    def _decode_stamps(self, headers: Mapping[str, Any]) -> tuple[Stamp, ...]:
        stamps: list[Stamp] = []
        for key, raw in headers.items():
            if not key.startswith(STAMP_HEADER_PREFIX):
                continue
            stamp_class = self._registry.get_stamp(key[len(STAMP_HEADER_PREFIX) :])
            if stamp_class is None:
                # Stamps unknown to this consumer are dropped.
                continue
            try:
                values = json.loads(raw) if isinstance(raw, str) else raw
                stamps.extend(stamp_class.model_validate(v) for v in values)
            except (TypeError, ValueError) as e:
                raise MessagingSerializationError(
                    f"Invalid {key} header: {e}"
                ) from e
        return tuple(stamps)

    @staticmethod
    def _decode_headers(raw: Any) -> Mapping[str, Any]:
        if raw is None:
            return {}
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                raise MessagingSerializationError(f"Invalid headers: {e}") from e
        if not isinstance(raw, Mapping):
            raise MessagingSerializationError("Headers must be a mapping")
        return raw
