"""
Registry of named subsystems and shared objects.

Subsystems (player, currency, weather, ...) initialize independently and
register themselves here under a well-known name. Consumers such as the save
core look them up on every use and must cope with a missing entry at any
time, since a subsystem may come up after its consumers or be torn down early.

Usage:
    registry = Registry()
    registry.register_system("currency", currency_manager)
    registry.set_object("currentPlayer", player)

    currency = registry.get_system("currency")
    if currency is not None:
        ...
"""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Any, Iterator

from meadow_engine.core.events import EventBus


logger = logging.getLogger(__name__)


class RegistryEvent(Enum):
    """Registry lifecycle events."""
    SYSTEM_REGISTERED = auto()
    SYSTEM_UNREGISTERED = auto()


class Registry:
    """
    Name-based lookup for systems and objects.

    Systems are long-lived services (the currency manager, the weather
    system). Objects are shared game objects that may be swapped at runtime
    (the current player entity, the world). Both lookups are synchronous and
    return None when nothing is registered.
    """

    def __init__(self, event_bus: EventBus | None = None):
        self.event_bus = event_bus or EventBus()
        self._systems: dict[str, Any] = {}
        self._objects: dict[str, Any] = {}

    # Systems

    def register_system(self, name: str, system: Any) -> Any:
        """
        Register a system under a name, replacing any previous one.

        Returns:
            The registered system (for chaining)
        """
        self._systems[name] = system
        logger.debug("Registered system: %s", name)
        self.event_bus.publish(RegistryEvent.SYSTEM_REGISTERED, name=name, system=system)
        return system

    def unregister_system(self, name: str) -> Any | None:
        """Remove a system. Returns the removed system, or None."""
        system = self._systems.pop(name, None)
        if system is not None:
            self.event_bus.publish(RegistryEvent.SYSTEM_UNREGISTERED, name=name, system=system)
        return system

    def get_system(self, name: str) -> Any | None:
        """Get a system by name."""
        return self._systems.get(name)

    def has_system(self, name: str) -> bool:
        return name in self._systems

    @property
    def system_names(self) -> Iterator[str]:
        """Iterate over registered system names."""
        return iter(list(self._systems))

    # Objects

    def set_object(self, name: str, value: Any) -> Any:
        """Set a shared object. Returns the value."""
        self._objects[name] = value
        return value

    def get_object(self, name: str) -> Any | None:
        """Get a shared object by name."""
        return self._objects.get(name)

    def remove_object(self, name: str) -> Any | None:
        return self._objects.pop(name, None)

    def clear(self) -> None:
        """Forget every system and object."""
        self._systems.clear()
        self._objects.clear()
