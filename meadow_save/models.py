"""
Save data model.

Persisted structures are Pydantic models so that documents coming back from
storage are validated and typed, while the JSON keeps the camelCase field
names of the on-disk layout:

    {"version": 1,
     "slots": [{"meta": {"slotIndex": 0, "saveName": "Save 1", ...},
                "data": {"player": {...}, "currency": {...}, ...}},
               null,
               null]}

Slot.data is kept as a plain mapping. GameSnapshot is what the gather
protocol builds; it is dumped to that mapping before it is stored, so a save
written by an older build with odd field types still loads.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


Number = Union[int, float]


class SaveReason(str, Enum):
    """Why a save was written."""
    MANUAL = "manual"
    AUTO = "auto"
    BEFORE_UNLOAD = "beforeunload"


class SaveModel(BaseModel):
    """
    Base class for persisted models.

    - Python attributes are snake_case, JSON keys camelCase
    - Unknown keys are kept, so fields written by newer builds survive a
      load/save cycle
    - NaN and infinities are dumped as floats, never as null, so the store
      refuses them instead of writing a quietly changed value
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='allow',
        validate_assignment=True,
        ser_json_inf_nan='constants',
    )

    def to_data(self) -> dict[str, Any]:
        """Dump to JSON-compatible data using the persisted key names."""
        return self.model_dump(mode='json', by_alias=True)


# Slots

class SlotMeta(SaveModel):
    """Metadata shown in the slot picker."""
    slot_index: int = 0
    save_name: str = ""
    character_id: str = "stella"
    character_name: str = "Stella"
    created_at: int = 0
    last_saved_at: int = 0
    last_played_at: int = 0
    total_play_time_ms: Number = 0
    last_session_ms: Number = 0
    last_save_reason: str = SaveReason.MANUAL.value

    @field_validator('total_play_time_ms', 'last_session_ms')
    @classmethod
    def _finite_play_time(cls, value: Number) -> Number:
        # Older documents may hold NaN here; count it as no play time
        return value if math.isfinite(value) else 0


class Slot(SaveModel):
    """One occupied save slot."""
    meta: SlotMeta = Field(default_factory=SlotMeta)
    data: dict[str, Any] = Field(default_factory=dict)


class RootDocument(SaveModel):
    """Top-level persisted document holding every slot."""
    version: int = 1
    slots: list[Optional[Slot]] = Field(default_factory=lambda: [None, None, None])

    def is_occupied(self, slot_index: int) -> bool:
        return 0 <= slot_index < len(self.slots) and self.slots[slot_index] is not None


# Snapshot sections

class NeedsSnapshot(SaveModel):
    hunger: Number = 100
    thirst: Number = 100
    energy: Number = 100


class PlayerSnapshot(SaveModel):
    x: Number = 400
    y: Number = 300
    facing_direction: str = "down"
    character_id: str = "stella"
    needs: NeedsSnapshot = Field(default_factory=NeedsSnapshot)


class CurrencySnapshot(SaveModel):
    money: Number = 1000


class WeatherSnapshot(SaveModel):
    """Durable calendar and weather fields. Particles and sleep state are not part of it."""
    current_time: Number = 360
    day: int = 1
    month: int = 1
    year: int = 1
    season: str = "Spring"
    weather_type: str = "clear"
    weather_timer: Number = 0
    next_weather_change: Number = 120
    ambient_darkness: Number = 0


class ItemStackSnapshot(SaveModel):
    id: Union[int, str]
    quantity: Number = 1


class InventorySnapshot(SaveModel):
    categories: dict[str, list[ItemStackSnapshot]] = Field(default_factory=dict)
    equipped: Any = None


class ChestSnapshot(SaveModel):
    id: str
    x: Optional[Number] = None
    y: Optional[Number] = None
    contents: dict[Any, Any] = Field(default_factory=dict)


class GameSnapshot(SaveModel):
    """
    Value copy of every persisted subsystem.

    inventory and chests are None when their subsystem was absent at gather
    time and are then left out of the stored data entirely. Custom sections
    are stored as extra keys.
    """
    player: PlayerSnapshot = Field(default_factory=PlayerSnapshot)
    currency: CurrencySnapshot = Field(default_factory=CurrencySnapshot)
    weather: Optional[WeatherSnapshot] = None
    world: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    inventory: Optional[InventorySnapshot] = None
    chests: Optional[dict[str, ChestSnapshot]] = None

    def to_data(self) -> dict[str, Any]:
        data = super().to_data()
        for optional in ("inventory", "chests"):
            if data.get(optional) is None:
                data.pop(optional, None)
        return data


# Session

@dataclass
class SessionState:
    """
    Process-wide play session. Never persisted.

    Attributes:
        active_slot: Index of the slot being played, or None
        session_start_at: Timestamp (ms) of the last select or save
        session_ms: Play time not yet folded into a slot's totalPlayTimeMs
        is_dirty: Unsaved-changes hint for the UI
    """
    active_slot: Optional[int] = None
    session_start_at: Optional[int] = None
    session_ms: float = 0
    is_dirty: bool = False

    def reset(self) -> None:
        self.active_slot = None
        self.session_start_at = None
        self.session_ms = 0
        self.is_dirty = False
