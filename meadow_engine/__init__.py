"""
Meadow Engine

Infrastructure shared by the game's subsystems: a typed event bus, a registry
for looking subsystems up by name, frame-driven timers and key-value backing
stores.

Quick Start:
    from meadow_engine import EventBus, Registry, TimerService, MemoryStore

    bus = EventBus()
    registry = Registry(bus)
    registry.register_system("currency", currency_manager)

    timers = TimerService()
    timers.set_interval(lambda: print("tick"), 1000)
    timers.update(16.7)  # call every frame
"""

__version__ = "0.1.0"

from meadow_engine.core import (
    EventBus,
    Event,
    Registry,
    RegistryEvent,
    TimerService,
)
from meadow_engine.storage import (
    KeyValueStore,
    MemoryStore,
    JsonFileStore,
    StorageError,
)

__all__ = [
    # Core
    "EventBus",
    "Event",
    "Registry",
    "RegistryEvent",
    "TimerService",
    # Storage
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "StorageError",
]
