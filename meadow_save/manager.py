"""
Save manager - the single entry point hosts use for saving and loading.

Provides:
- 3 fixed save slots in one versioned JSON document
- Play time tracking for the active slot
- Autosave on a host-driven timer
- Gather/apply of every registered save section
- Event publishing for slot changes, loads and applies
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from meadow_engine.core import Registry, TimerService
from meadow_engine.storage import KeyValueStore, MemoryStore
from meadow_save.apply import ApplyProtocol
from meadow_save.autosave import AutoSaveScheduler
from meadow_save.config import SaveConfig
from meadow_save.events import SaveEvent
from meadow_save.gather import GatherProtocol
from meadow_save.models import GameSnapshot, SaveReason, SessionState, Slot, SlotMeta
from meadow_save.root_store import RootStore
from meadow_save.sections import SaveSection, WeatherSection, default_sections
from meadow_save.session import SessionTracker
from meadow_save.slots import Clock, SlotManager


logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    """Current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


class SaveManager:
    """
    Facade over the save core.

    Registers itself in the Registry as the save system so UI code can find
    it the same way it finds any other subsystem.

    Usage:
        saves = SaveManager(registry, JsonFileStore("saves"))

        # New game
        saves.reset_weather_for_new_game()
        saves.select_active_slot(0)
        saves.create_or_overwrite_slot(0, save_name="Farm")
        saves.start_auto_save()

        # Continue
        slot = saves.load_slot(0)
        saves.apply_save_data(slot)

        # In game loop:
        saves.update(dt_ms)

        # On shutdown
        saves.save_before_unload()
    """

    def __init__(
        self,
        registry: Registry,
        backend: Optional[KeyValueStore] = None,
        config: Optional[SaveConfig] = None,
        timers: Optional[TimerService] = None,
        clock: Optional[Clock] = None,
    ):
        self.registry = registry
        self.event_bus = registry.event_bus
        self.config = config or SaveConfig()
        self.timers = timers or TimerService()
        self.clock = clock or wall_clock_ms

        self.state = SessionState()
        self.sections: dict[str, SaveSection] = default_sections(self.config)

        self.store = RootStore(backend if backend is not None else MemoryStore(), self.config)
        self.gatherer = GatherProtocol(registry, self.sections, self.config)
        self.applier = ApplyProtocol(registry, self.sections, self.event_bus)
        self.slots = SlotManager(
            self.store, self.state, self.gatherer, registry,
            self.config, self.clock, self.event_bus,
        )
        self.session = SessionTracker(
            self.store, self.slots, self.state, self.config, self.clock,
        )
        self.autosave = AutoSaveScheduler(
            self.timers, self.session, self.config, self.event_bus,
        )

        registry.register_system(self.config.names.save, self)

    # Properties

    @property
    def active_slot(self) -> int | None:
        return self.state.active_slot

    @property
    def session_ms(self) -> float:
        return self.state.session_ms

    @property
    def is_dirty(self) -> bool:
        return self.state.is_dirty

    # Sections

    def register_section(self, section: SaveSection) -> None:
        """
        Add a persisted subsystem, or replace the section with the same name.

        New sections are gathered and applied after the built-in ones.
        """
        if section.name in self.sections:
            logger.info("Replacing save section %r", section.name)
        self.sections[section.name] = section

    # Slots

    def list_slots(self) -> list[Optional[Slot]]:
        return self.slots.list_slots()

    def is_slot_empty(self, slot_index: Any) -> bool:
        return self.slots.is_slot_empty(slot_index)

    def get_slot_meta(self, slot_index: Any) -> SlotMeta | None:
        return self.slots.get_slot_meta(slot_index)

    def has_any_save(self) -> bool:
        return self.slots.has_any_save()

    def create_or_overwrite_slot(
        self,
        slot_index: Any,
        save_name: str | None = None,
        character_id: str | None = None,
        character_name: str | None = None,
        reason: SaveReason | str | None = None,
    ) -> bool:
        return self.slots.create_or_overwrite_slot(
            slot_index,
            save_name=save_name,
            character_id=character_id,
            character_name=character_name,
            reason=reason,
        )

    def rename_slot(self, slot_index: Any, name: Any) -> bool:
        return self.slots.rename_slot(slot_index, name)

    def delete_slot(self, slot_index: Any) -> bool:
        return self.slots.delete_slot(slot_index)

    def load_slot(self, slot_index: Any) -> Slot | None:
        """
        Make an occupied slot active and return a copy of it.

        The slot is not applied; pass the result to apply_save_data().

        Returns:
            Copy of the slot, or None if the index is invalid or the slot empty
        """
        if self.slots.is_slot_empty(slot_index):
            logger.warning("Cannot load empty or invalid slot %r", slot_index)
            return None

        self.session.select_active_slot(slot_index)
        slot = self.store.read().slots[slot_index].model_copy(deep=True)

        logger.info("Loaded slot %d (%s)", slot_index, slot.meta.save_name)
        self.event_bus.publish(SaveEvent.SLOT_LOADED, slot_index=slot_index, slot=slot)
        return slot

    # Session

    def select_active_slot(self, slot_index: Any) -> bool:
        return self.session.select_active_slot(slot_index)

    def last_selected_slot(self) -> int | None:
        return self.session.last_selected_slot()

    def tick(self, delta_ms: float) -> None:
        self.session.tick(delta_ms)

    def mark_dirty(self) -> None:
        self.session.mark_dirty()

    def save_active(self, reason: SaveReason | str = SaveReason.MANUAL) -> bool:
        return self.session.save_active(reason)

    def save_before_unload(self) -> bool:
        """Save the active slot as the game is closing."""
        if self.state.active_slot is None:
            return False
        return self.session.save_active(SaveReason.BEFORE_UNLOAD)

    def update(self, dt_ms: float) -> None:
        """
        Per-frame hook: counts play time and drives the autosave timer.

        Args:
            dt_ms: Frame time in milliseconds
        """
        self.session.tick(dt_ms)
        self.timers.update(dt_ms)

    # Autosave

    def start_auto_save(self, interval_ms: float | None = None) -> bool:
        return self.autosave.start_auto_save(interval_ms)

    def stop_auto_save(self) -> None:
        self.autosave.stop_auto_save()

    # Snapshots

    def gather(self) -> GameSnapshot:
        return self.gatherer.gather()

    def apply_save_data(self, record: Any) -> bool:
        return self.applier.apply_save_data(record)

    def reset_weather_for_new_game(self) -> bool:
        """Put the game clock back to the first morning of a new game."""
        section = self.sections.get(WeatherSection.name)
        if not isinstance(section, WeatherSection):
            section = WeatherSection(self.config)
        return section.reset_for_new_game(self.registry)

    def clear_cache(self) -> None:
        """Re-read the save document from storage on next access."""
        self.store.clear_cache()
