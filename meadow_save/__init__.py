"""
Meadow save core - save slots, play sessions and autosave for the game.

Exports:
- SaveManager: Facade used by hosts
- SaveConfig: Configuration
- SaveEvent: Events published on the engine EventBus
- SaveSection: Base class for persisted subsystems
- Models: RootDocument, Slot, SlotMeta, GameSnapshot, SaveReason
- format_play_time, format_date_time: Slot picker helpers
"""

from meadow_save.config import SaveConfig
from meadow_save.events import SaveEvent
from meadow_save.formatting import format_date_time, format_play_time
from meadow_save.manager import SaveManager
from meadow_save.models import (
    GameSnapshot,
    RootDocument,
    SaveReason,
    SessionState,
    Slot,
    SlotMeta,
)
from meadow_save.sections import SaveSection, default_sections

__all__ = [
    "SaveManager",
    "SaveConfig",
    "SaveEvent",
    "SaveSection",
    "default_sections",
    "GameSnapshot",
    "RootDocument",
    "SaveReason",
    "SessionState",
    "Slot",
    "SlotMeta",
    "format_play_time",
    "format_date_time",
]
