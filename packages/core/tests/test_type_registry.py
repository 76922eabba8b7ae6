"""Tests for MessageTypeRegistry."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from messenger_core.exceptions import MessagingSerializationError
from messenger_core.registry import MessageTypeRegistry
from messenger_core.stamps import DelayStamp, Stamp


class OrderPlaced(BaseModel):
    order_id: str


class PriorityStamp(Stamp):
    level: int


def test_register_and_resolve() -> None:
    registry = MessageTypeRegistry()
    registry.register("OrderPlaced", OrderPlaced)
    assert registry.has("OrderPlaced")
    assert registry.resolve("OrderPlaced") is OrderPlaced
    assert registry.name_for(OrderPlaced) == "OrderPlaced"


def test_unregistered_class_uses_import_path() -> None:
    registry = MessageTypeRegistry()
    assert registry.name_for(DelayStamp) == "messenger_core.stamps:DelayStamp"
    assert registry.resolve("messenger_core.stamps:DelayStamp") is DelayStamp


def test_resolve_unknown_name_raises() -> None:
    registry = MessageTypeRegistry()
    with pytest.raises(MessagingSerializationError, match="Unknown message type"):
        registry.resolve("Nope")


def test_resolve_unimportable_path_raises() -> None:
    registry = MessageTypeRegistry()
    with pytest.raises(MessagingSerializationError, match="cannot be imported"):
        registry.resolve("no_such_module_xyz:Thing")
    with pytest.raises(MessagingSerializationError, match="cannot be imported"):
        registry.resolve("messenger_core.stamps:Missing")


def test_resolve_non_model_raises() -> None:
    registry = MessageTypeRegistry()
    with pytest.raises(MessagingSerializationError, match="not a pydantic model"):
        registry.resolve("messenger_core.registry:importlib")


def test_delay_stamp_registered_by_default() -> None:
    registry = MessageTypeRegistry()
    assert registry.get_stamp("DelayStamp") is DelayStamp
    assert registry.get_stamp("PriorityStamp") is None
    registry.register_stamp(PriorityStamp)
    assert registry.get_stamp("PriorityStamp") is PriorityStamp


def test_unregistered_stamp_uses_import_path() -> None:
    registry = MessageTypeRegistry()
    name = registry.stamp_name_for(PriorityStamp)
    assert name == f"{__name__}:PriorityStamp"
    assert registry.get_stamp(name) is PriorityStamp

    registry.register_stamp(PriorityStamp)
    assert registry.stamp_name_for(PriorityStamp) == "PriorityStamp"
    assert registry.stamp_name_for(DelayStamp) == "DelayStamp"


@pytest.mark.parametrize(
    "name",
    [
        "messenger_core.stamps:Missing",
        "no_such_module_xyz:Stamp",
        f"{__name__}:OrderPlaced",
    ],
)
def test_get_stamp_ignores_unusable_import_paths(name) -> None:
    assert MessageTypeRegistry().get_stamp(name) is None


def test_list_and_clear() -> None:
    registry = MessageTypeRegistry()
    registry.register("OrderPlaced", OrderPlaced)
    assert registry.list_registered() == ["OrderPlaced"]
    registry.clear()
    assert registry.list_registered() == []
    assert registry.name_for(OrderPlaced).endswith(":OrderPlaced")
