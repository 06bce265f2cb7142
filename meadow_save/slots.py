"""
Slot manager - create, overwrite, rename, delete and list save slots.

Every mutation works on a deep copy of the root document and commits it
through RootStore.write(), so a failed write leaves both the cache and the
backing store as they were.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from pydantic import ValidationError

from meadow_engine.core import EventBus
from meadow_save.config import SaveConfig
from meadow_save.events import SaveEvent
from meadow_save.models import SaveReason, SessionState, Slot, SlotMeta
from meadow_save.root_store import RootStore
from meadow_save.sections.base import number_or, read_field

if TYPE_CHECKING:
    from meadow_engine.core import Registry
    from meadow_save.gather import GatherProtocol


logger = logging.getLogger(__name__)


Clock = Callable[[], int]


class SlotManager:
    """
    CRUD over the fixed set of save slots.

    Invalid arguments are answered with False/None, never an exception.

    Usage:
        slots = SlotManager(store, state, gatherer, registry, config, clock)
        slots.create_or_overwrite_slot(0, save_name="Farm")
        slots.rename_slot(0, "Spring farm")
        for slot in slots.list_slots():
            ...
    """

    def __init__(
        self,
        store: RootStore,
        state: SessionState,
        gatherer: GatherProtocol,
        registry: Registry,
        config: SaveConfig,
        clock: Clock,
        event_bus: EventBus | None = None,
    ):
        self.store = store
        self.state = state
        self.gatherer = gatherer
        self.registry = registry
        self.config = config
        self.clock = clock
        self.event_bus = event_bus

    # Queries

    def list_slots(self) -> list[Optional[Slot]]:
        """Copy of every slot; empty slots are None."""
        return [
            slot.model_copy(deep=True) if slot is not None else None
            for slot in self.store.read().slots
        ]

    def is_slot_empty(self, slot_index: Any) -> bool:
        if not self.config.is_valid_slot(slot_index):
            return True
        return not self.store.read().is_occupied(slot_index)

    def get_slot_meta(self, slot_index: Any) -> SlotMeta | None:
        """Copy of a slot's metadata, or None for an empty/invalid slot."""
        if self.is_slot_empty(slot_index):
            return None
        return self.store.read().slots[slot_index].meta.model_copy(deep=True)

    def has_any_save(self) -> bool:
        return any(slot is not None for slot in self.store.read().slots)

    # Mutations

    def create_or_overwrite_slot(
        self,
        slot_index: Any,
        save_name: str | None = None,
        character_id: str | None = None,
        character_name: str | None = None,
        reason: SaveReason | str | None = None,
    ) -> bool:
        """
        Write the current game into a slot.

        Identity fields not given explicitly are kept from the slot being
        overwritten, then taken from the live player system, then defaulted.
        The play time accumulated since the last save is added to the slot's
        total and the session counter restarts.

        Args:
            slot_index: Slot to write (0 .. max_slots - 1)
            save_name: Display name (trimmed, truncated)
            character_id: Character the save belongs to
            character_name: Display name of that character
            reason: manual, auto or beforeunload (default manual)

        Returns:
            True if the save was written
        """
        if not self.config.is_valid_slot(slot_index):
            logger.warning("Refusing to save into invalid slot %r", slot_index)
            return False

        try:
            reason = SaveReason(reason or SaveReason.MANUAL).value
        except ValueError:
            logger.warning("Unknown save reason %r", reason)
            return False

        now = self.clock()
        session_ms = self.state.session_ms

        root = self.store.read().model_copy(deep=True)
        previous = root.slots[slot_index].meta if root.slots[slot_index] is not None else None

        name = self._clean_name(save_name)
        if name is None:
            name = previous.save_name if previous else f"Save {slot_index + 1}"

        try:
            meta = self._build_meta(
                slot_index, name, previous, now, session_ms, reason,
                character_id, character_name,
            )
        except ValidationError as e:
            logger.warning("Cannot build metadata for slot %d: %s", slot_index, e)
            return False

        snapshot = self.gatherer.gather()
        root.slots[slot_index] = Slot(meta=meta, data=snapshot.to_data())

        if not self.store.write(root):
            logger.error("Saving slot %d failed", slot_index)
            self._publish(SaveEvent.SAVE_FAILED, slot_index=slot_index, reason=reason)
            return False

        self.state.session_ms = 0
        self.state.session_start_at = now
        self.state.is_dirty = False

        logger.info("Saved slot %d (%s, %s)", slot_index, meta.save_name, reason)
        self._publish(SaveEvent.SLOTS_CHANGED, slot_index=slot_index, action="save", reason=reason)
        return True

    def _build_meta(
        self,
        slot_index: int,
        name: str,
        previous: SlotMeta | None,
        now: int,
        session_ms: float,
        reason: str,
        character_id: str | None,
        character_name: str | None,
    ) -> SlotMeta:
        live_id, live_name = self._live_character()
        previous_total = number_or(previous.total_play_time_ms, 0) if previous else 0
        return SlotMeta(
            slot_index=slot_index,
            save_name=name,
            character_id=(
                character_id
                or (previous.character_id if previous else None)
                or live_id
                or self.config.default_character_id
            ),
            character_name=(
                character_name
                or (previous.character_name if previous else None)
                or live_name
                or self.config.default_character_name
            ),
            created_at=previous.created_at if previous else now,
            last_saved_at=now,
            last_played_at=previous.last_played_at if previous else now,
            total_play_time_ms=previous_total + session_ms,
            last_session_ms=session_ms,
            last_save_reason=reason,
        )

    def rename_slot(self, slot_index: Any, name: Any) -> bool:
        """
        Rename an occupied slot.

        Returns:
            False if the slot is invalid or empty, or the name is blank
        """
        clean = self._clean_name(name)
        if clean is None or self.is_slot_empty(slot_index):
            logger.warning("Cannot rename slot %r to %r", slot_index, name)
            return False

        root = self.store.read().model_copy(deep=True)
        root.slots[slot_index].meta.save_name = clean
        if not self.store.write(root):
            return False

        logger.info("Renamed slot %d to %r", slot_index, clean)
        self._publish(SaveEvent.SLOTS_CHANGED, slot_index=slot_index, action="rename", reason=None)
        return True

    def delete_slot(self, slot_index: Any) -> bool:
        """
        Empty a slot.

        Deleting an already empty slot succeeds. Deleting the active slot
        also ends the active selection.

        Returns:
            False if the index is invalid or the write failed
        """
        if not self.config.is_valid_slot(slot_index):
            logger.warning("Refusing to delete invalid slot %r", slot_index)
            return False

        if self.store.read().is_occupied(slot_index):
            root = self.store.read().model_copy(deep=True)
            root.slots[slot_index] = None
            if not self.store.write(root):
                return False
            logger.info("Deleted slot %d", slot_index)

        if self.state.active_slot == slot_index:
            self.state.active_slot = None
            self.store.write_active_slot(None)

        self._publish(SaveEvent.SLOTS_CHANGED, slot_index=slot_index, action="delete", reason=None)
        return True

    # Helpers

    def _clean_name(self, name: Any) -> str | None:
        """Trimmed, truncated name, or None if it is not a usable string."""
        if not isinstance(name, str):
            return None
        name = name.strip()[:self.config.max_save_name_length].strip()
        return name or None

    def _live_character(self) -> tuple[str | None, str | None]:
        system = self.registry.get_system(self.config.names.player_system)
        character = read_field(system, "active_character")
        character_id = read_field(character, "id")
        character_name = read_field(character, "name")
        return (
            str(character_id) if character_id is not None else None,
            str(character_name) if character_name is not None else None,
        )

    def _publish(self, event_type: SaveEvent, **data: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, **data)
