"""Test configuration for the MongoDB transport package."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pydantic import BaseModel

from messenger_core.registry import MessageTypeRegistry
from messenger_core.serialization import EnvelopeSerializer
from messenger_mongo import MongoConnectionManager


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests that require external services",
    )


class HelloMessage(BaseModel):
    """Message used across the transport tests."""

    text: str


class FrozenClock:
    """Controllable time source for lease and delay tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class AsyncCursor:
    """Async-iterable stand-in for a Motor cursor over fixed documents."""

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self._documents = list(documents)

    def __aiter__(self) -> AsyncCursor:
        self._position = 0
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._position >= len(self._documents):
            raise StopAsyncIteration
        doc = self._documents[self._position]
        self._position += 1
        return doc


def make_document(**overrides: Any) -> dict[str, Any]:
    doc = {
        "_id": ObjectId(),
        "body": '{"text": "Hello"}',
        "headers": {"type": "HelloMessage"},
        "consumer_id": "consumer_id",
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def hello_message() -> type[HelloMessage]:
    return HelloMessage


@pytest.fixture
def document_factory():
    return make_document


@pytest.fixture
def cursor_factory():
    return AsyncCursor


@pytest.fixture
def serializer() -> EnvelopeSerializer:
    registry = MessageTypeRegistry()
    registry.register("HelloMessage", HelloMessage)
    return EnvelopeSerializer(registry)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def mock_collection() -> MagicMock:
    """Collection double exposing the async Motor surface the transport uses."""
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.find_one = AsyncMock(return_value=None)
    collection.delete_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)
    collection.create_index = AsyncMock(return_value="queue_name_available_at")
    collection.with_options = MagicMock(return_value=collection)
    return collection


@pytest.fixture
async def mongo_connection():
    """Create a MongoDB connection for testing."""
    # Use mongomock for unit tests to avoid real database dependency
    try:
        from mongomock_motor import AsyncMongoMockClient

        connection = MongoConnectionManager.__new__(MongoConnectionManager)
        connection._client = AsyncMongoMockClient(default_database_name="test_db")
        connection._url = "mongodb://mock:27017/test_db"

        async def _mock_connect():
            return connection._client

        connection.connect = _mock_connect

        yield connection

    except ImportError:
        pytest.skip("mongomock-motor not installed")


@pytest.fixture
async def mongo_collection(mongo_connection):
    """Empty transport collection backed by mongomock."""
    return mongo_connection.get_collection("messenger_messages", "test_db")


@pytest.fixture(scope="module")
def mongo_container():
    """Create a MongoDB container using testcontainers."""
    pytest.importorskip("testcontainers")

    from testcontainers.mongodb import MongoDbContainer

    with MongoDbContainer("mongo:7.0") as mongo:
        yield mongo


@pytest.fixture
async def real_mongo_collection(mongo_container):
    """
    Transport collection on a real MongoDB instance (testcontainers).

    Function scope avoids "Event loop is closed" when tests run in different loops.
    The collection is dropped before each test for isolation.
    """
    connection = MongoConnectionManager(url=mongo_container.get_connection_url())
    await connection.connect()
    collection = connection.get_collection("messenger_messages", "test_db")
    await collection.drop()

    yield collection

    connection.close()
