"""
Session tracker - the active slot, play time and the unsaved-changes hint.
"""

from __future__ import annotations

import logging
from typing import Any

from meadow_save.config import SaveConfig
from meadow_save.models import SaveReason, SessionState
from meadow_save.root_store import RootStore
from meadow_save.sections.base import is_real_number
from meadow_save.slots import Clock, SlotManager


logger = logging.getLogger(__name__)


class SessionTracker:
    """
    Tracks which slot is being played and for how long.

    tick() is meant to be called every frame by the host loop.

    Usage:
        session.select_active_slot(0)

        # In game loop:
        session.tick(dt_ms)

        session.save_active()
    """

    def __init__(
        self,
        store: RootStore,
        slots: SlotManager,
        state: SessionState,
        config: SaveConfig,
        clock: Clock,
    ):
        self.store = store
        self.slots = slots
        self.state = state
        self.config = config
        self.clock = clock

    def select_active_slot(self, slot_index: Any) -> bool:
        """
        Make a slot the one being played and restart the session counter.

        An occupied slot gets its lastPlayedAt stamped and persisted right
        away. The index is also remembered under the active slot key.

        Returns:
            False if the index is invalid
        """
        if not self.config.is_valid_slot(slot_index):
            logger.warning("Ignoring selection of invalid slot %r", slot_index)
            return False

        now = self.clock()
        self.state.active_slot = slot_index
        self.state.session_start_at = now
        self.state.session_ms = 0

        self.store.write_active_slot(slot_index)

        if self.store.read().is_occupied(slot_index):
            root = self.store.read().model_copy(deep=True)
            root.slots[slot_index].meta.last_played_at = now
            if not self.store.write(root):
                logger.error("Failed to stamp lastPlayedAt on slot %d", slot_index)

        logger.info("Active slot: %d", slot_index)
        return True

    def tick(self, delta_ms: float) -> None:
        """
        Add frame time to the session while a slot is active.

        Negative and non-finite deltas are ignored so the play time total
        only ever grows.
        """
        if self.state.active_slot is not None and is_real_number(delta_ms) and delta_ms > 0:
            self.state.session_ms += delta_ms

    def mark_dirty(self) -> None:
        """Flag unsaved changes. Only read by UI; saving never checks it."""
        self.state.is_dirty = True

    def save_active(self, reason: SaveReason | str = SaveReason.MANUAL) -> bool:
        """
        Save into the active slot, keeping its name and character.

        Returns:
            False if no slot is active or the save failed
        """
        if self.state.active_slot is None:
            logger.debug("No active slot, nothing to save")
            return False
        return self.slots.create_or_overwrite_slot(self.state.active_slot, reason=reason)

    def last_selected_slot(self) -> int | None:
        """
        Slot index remembered from the last selection, if still valid.

        Never selects it; the host decides whether to resume.
        """
        slot_index = self.store.read_active_slot()
        return slot_index if slot_index is not None and self.config.is_valid_slot(slot_index) else None
