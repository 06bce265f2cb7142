"""
Save sections - one per persisted subsystem.

default_sections() returns the built-in sections in the order they are
applied when a save is loaded.
"""

from __future__ import annotations

from meadow_save.config import SaveConfig
from meadow_save.sections.base import SaveSection
from meadow_save.sections.chests import ChestSection
from meadow_save.sections.currency import CurrencySection
from meadow_save.sections.inventory import InventorySection
from meadow_save.sections.player import PlayerSection
from meadow_save.sections.weather import WeatherSection, reset_transient_state
from meadow_save.sections.world import WorldSection


def default_sections(config: SaveConfig | None = None) -> dict[str, SaveSection]:
    """Create the built-in sections keyed by name, in apply order."""
    config = config or SaveConfig()
    sections = (
        PlayerSection(config),
        InventorySection(config),
        CurrencySection(config),
        WeatherSection(config),
        WorldSection(config),
        ChestSection(config),
    )
    return {section.name: section for section in sections}


__all__ = [
    "SaveSection",
    "PlayerSection",
    "InventorySection",
    "CurrencySection",
    "WeatherSection",
    "WorldSection",
    "ChestSection",
    "default_sections",
    "reset_transient_state",
]
