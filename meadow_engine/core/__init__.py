"""
Core engine module.

Exports:
- EventBus, Event: Event system
- Registry, RegistryEvent: Named lookup of systems and shared objects
- TimerService: Host-driven repeating timers
"""

from meadow_engine.core.events import EventBus, Event, EventHandler
from meadow_engine.core.registry import Registry, RegistryEvent
from meadow_engine.core.timers import TimerService

__all__ = [
    # Events
    "EventBus",
    "Event",
    "EventHandler",
    # Lookup
    "Registry",
    "RegistryEvent",
    # Timing
    "TimerService",
]
