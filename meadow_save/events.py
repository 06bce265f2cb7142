"""Save core events."""

from enum import Enum, auto


class SaveEvent(Enum):
    """Events published by the save core on the engine EventBus."""
    SLOTS_CHANGED = auto()        # slot_index, action ("save" | "rename" | "delete"), reason
    SLOT_LOADED = auto()          # slot_index, slot
    SAVE_APPLIED = auto()         # sections
    SAVE_FAILED = auto()          # slot_index, reason
    AUTO_SAVE_TRIGGERED = auto()  # slot_index
    TIME_CHANGED = auto()         # day, time, weekday
