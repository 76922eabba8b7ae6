"""Messenger core — envelopes, stamps, serialization and transport ports."""

from __future__ import annotations

from .envelope import Envelope
from .exceptions import (
    InfrastructureError,
    MalformedDocumentError,
    MessagingConnectionError,
    MessagingError,
    MessagingSerializationError,
    MessengerError,
    MissingTransportIdError,
    TransportConfigurationError,
)
from .ports import (
    IEnvelopeSerializer,
    IListableReceiver,
    IMessageCountAware,
    IReceiver,
    ISender,
    ITransport,
)
from .registry import MessageTypeRegistry
from .serialization import EnvelopeSerializer
from .stamps import DelayStamp, Stamp, TransportMessageIdStamp

__all__ = [
    "DelayStamp",
    "Envelope",
    "EnvelopeSerializer",
    "IEnvelopeSerializer",
    "IListableReceiver",
    "IMessageCountAware",
    "IReceiver",
    "ISender",
    "ITransport",
    "InfrastructureError",
    "MalformedDocumentError",
    "MessageTypeRegistry",
    "MessagingConnectionError",
    "MessagingError",
    "MessagingSerializationError",
    "MessengerError",
    "MissingTransportIdError",
    "Stamp",
    "TransportConfigurationError",
    "TransportMessageIdStamp",
]
