"""Exception hierarchy for the messenger toolkit."""

from __future__ import annotations


class MessengerError(Exception):
    """Root exception for the entire messenger toolkit."""


class InfrastructureError(MessengerError):
    """Base class for all infrastructure-related errors."""


class MessagingError(InfrastructureError):
    """Base class for all messaging-related infrastructure errors."""


class MessagingConnectionError(MessagingError):
    """Raised when connectivity to the message store fails."""


class MessagingSerializationError(MessagingError):
    """Raised when message serialization or deserialization fails."""


class MalformedDocumentError(MessagingSerializationError):
    """Raised when a stored document cannot be mapped back to an envelope.

    Carries the document id (when one could be read) for diagnostics.
    """

    def __init__(self, message: str, document_id: object | None = None) -> None:
        self.document_id = document_id
        super().__init__(message)


class MissingTransportIdError(MessagingError):
    """Raised when an envelope without a transport id is acknowledged or rejected.

    Usage: only envelopes returned by ``send()`` or ``get()`` carry the
    ``TransportMessageIdStamp`` that ack/reject/keepalive need.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(
            f"Cannot {operation} an envelope without a TransportMessageIdStamp"
        )


class TransportConfigurationError(MessagingError):
    """Raised when transport options or a DSN are invalid."""
