"""
Save core configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class PlayerDefaults:
    """Snapshot values used when the player subsystem is missing."""
    x: float = 400
    y: float = 300
    facing_direction: str = "down"
    hunger: float = 100
    thirst: float = 100
    energy: float = 100


@dataclass
class WeatherDefaults:
    """Calendar/weather values used for missing fields and new games."""
    current_time: int = 6 * 60  # minutes since midnight
    day: int = 1
    month: int = 1
    year: int = 1
    season: str = "Spring"
    weather_type: str = "clear"
    weather_timer: float = 0
    next_weather_change: float = 60 * 2
    ambient_darkness: float = 0


@dataclass
class SubsystemNames:
    """Registry names the built-in save sections look up."""
    player_system: str = "player"
    player_object: str = "currentPlayer"
    currency: str = "currency"
    weather: str = "weather"
    world: str = "world"
    inventory: str = "inventory"
    chests: str = "chest"
    save: str = "save"


@dataclass
class SaveConfig:
    """Complete save core configuration."""
    # Backing store keys
    root_key: str = "meadow_saves_v1"
    active_slot_key: str = "meadow_active_slot"

    # Document shape
    max_slots: int = 3
    save_version: int = 1
    max_save_name_length: int = 30

    # Autosave
    auto_save_interval_ms: int = 60_000

    # Identity used when neither the caller nor the player system names one
    default_character_id: str = "stella"
    default_character_name: str = "Stella"

    # Section defaults
    default_money: int = 1000
    player: PlayerDefaults = field(default_factory=PlayerDefaults)
    weather: WeatherDefaults = field(default_factory=WeatherDefaults)
    world_collections: tuple[str, ...] = (
        "trees",
        "rocks",
        "thickets",
        "houses",
        "placedBuildings",
        "placedWells",
        "animals",
    )

    names: SubsystemNames = field(default_factory=SubsystemNames)

    def is_valid_slot(self, slot_index: object) -> bool:
        """Check that a slot index is an int within [0, max_slots)."""
        return (
            isinstance(slot_index, int)
            and not isinstance(slot_index, bool)
            and 0 <= slot_index < self.max_slots
        )
