"""MessageTypeRegistry — maps type names to message and stamp classes."""

from __future__ import annotations

import importlib
from typing import Any

from pydantic import BaseModel

from .exceptions import MessagingSerializationError
from .stamps import DelayStamp, Stamp


class MessageTypeRegistry:
    """Registry for mapping ``type_name: str`` → message / stamp classes.

    Used by the serializer to write the ``type`` header and to rebuild
    messages and stamps on the consuming side.

    Messages and stamps that were never registered are addressed by their
    import path (``package.module:QualName``) so any importable pydantic model
    or stamp can travel without explicit registration.

    Usage::

        registry = MessageTypeRegistry()
        registry.register("HelloMessage", HelloMessage)
        cls = registry.resolve("HelloMessage")
    """

    def __init__(self) -> None:
        self._messages: dict[str, type[BaseModel]] = {}
        self._names: dict[type[BaseModel], str] = {}
        self._stamps: dict[str, type[Stamp]] = {}
        self.register_stamp(DelayStamp)

    def register(self, name: str, message_class: type[BaseModel]) -> None:
        """Register a message class under *name*."""
        self._messages[name] = message_class
        self._names[message_class] = name

    def register_stamp(self, stamp_class: type[Stamp]) -> None:
        self._stamps[stamp_class.stamp_name()] = stamp_class

    def name_for(self, message_class: type[Any]) -> str:
        """Return the registered name, falling back to the import path."""
        name = self._names.get(message_class)
        if name is not None:
            return name
        return f"{message_class.__module__}:{message_class.__qualname__}"

    def resolve(self, name: str) -> type[BaseModel]:
        """Look up a message class by type name.

        Raises:
            MessagingSerializationError: unknown name or unimportable path.
        """
        message_class = self._messages.get(name)
        if message_class is not None:
            return message_class
        if not _is_import_path(name):
            raise MessagingSerializationError(f"Unknown message type {name!r}")
        try:
            target = _import_path(name)
        except (ImportError, AttributeError) as e:
            raise MessagingSerializationError(
                f"Message type {name!r} cannot be imported"
            ) from e
        if not (isinstance(target, type) and issubclass(target, BaseModel)):
            raise MessagingSerializationError(
                f"Message type {name!r} is not a pydantic model"
            )
        return target

    def stamp_name_for(self, stamp_class: type[Stamp]) -> str:
        """Return the registered stamp name, falling back to the import path."""
        name = stamp_class.stamp_name()
        if self._stamps.get(name) is stamp_class:
            return name
        return f"{stamp_class.__module__}:{stamp_class.__qualname__}"

    def get_stamp(self, name: str) -> type[Stamp] | None:
        """Look up a stamp class by name or import path.

        Returns ``None`` for names that are neither registered nor importable
        ``Stamp`` subclasses.
        """
        stamp_class = self._stamps.get(name)
        if stamp_class is not None or not _is_import_path(name):
            return stamp_class
        try:
            target = _import_path(name)
        except (ImportError, AttributeError):
            return None
        if isinstance(target, type) and issubclass(target, Stamp):
            return target
        return None

    def has(self, name: str) -> bool:
        """Return ``True`` if *name* is explicitly registered."""
        return name in self._messages

    def list_registered(self) -> list[str]:
        return list(self._messages.keys())

    def clear(self) -> None:
        """Remove all message registrations (testing utility)."""
        self._messages.clear()
        self._names.clear()


def _is_import_path(name: str) -> bool:
    module_name, sep, qualname = name.partition(":")
    return bool(sep and module_name and qualname)


def _import_path(name: str) -> Any:
    """Import the object addressed by ``package.module:QualName``."""
    module_name, _, qualname = name.partition(":")
    target: Any = importlib.import_module(module_name)
    for part in qualname.split("."):
        target = getattr(target, part)
    return target
