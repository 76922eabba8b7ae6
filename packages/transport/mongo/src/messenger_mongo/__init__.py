"""MongoDB message transport.

Stores envelopes in a MongoDB collection and leases them to consumers with an
atomic claim; unacknowledged messages become claimable again once their lease
(the redeliver timeout) expires.
"""

from __future__ import annotations

from .config import MongoTransportOptions, parse_dsn
from .connection import MongoConnectionManager
from .document import MessageDocument
from .factory import MongoTransportFactory
from .indexes import ensure_transport_indexes
from .transport import MongoTransport
from .worker import MessengerWorker

__all__ = [
    "MessageDocument",
    "MessengerWorker",
    "MongoConnectionManager",
    "MongoTransport",
    "MongoTransportFactory",
    "MongoTransportOptions",
    "ensure_transport_indexes",
    "parse_dsn",
]
