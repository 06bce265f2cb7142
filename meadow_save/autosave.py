"""
Autosave scheduler - periodic saves of the active slot.

Runs on the host-driven TimerService, so a save only ever happens inside the
host's own update call.
"""

from __future__ import annotations

import logging

from meadow_engine.core import EventBus, TimerService
from meadow_save.config import SaveConfig
from meadow_save.events import SaveEvent
from meadow_save.models import SaveReason
from meadow_save.session import SessionTracker


logger = logging.getLogger(__name__)


class AutoSaveScheduler:
    """
    Owns at most one repeating autosave timer.

    Usage:
        autosave = AutoSaveScheduler(timers, session, config, event_bus)
        autosave.start_auto_save()          # default interval
        autosave.start_auto_save(30_000)    # replaces the previous timer
        autosave.stop_auto_save()
    """

    def __init__(
        self,
        timers: TimerService,
        session: SessionTracker,
        config: SaveConfig,
        event_bus: EventBus | None = None,
    ):
        self.timers = timers
        self.session = session
        self.config = config
        self.event_bus = event_bus
        self._handle: int | None = None

    @property
    def is_running(self) -> bool:
        return self.timers.is_active(self._handle)

    @property
    def interval_ms(self) -> float | None:
        """Interval of the running timer, or None when stopped."""
        if self._handle is None:
            return None
        return self.timers.get_interval(self._handle)

    def start_auto_save(self, interval_ms: float | None = None) -> bool:
        """
        (Re)start autosaving.

        Any running autosave timer is cancelled first.

        Args:
            interval_ms: Milliseconds between saves (default from config)

        Returns:
            False if the interval is not a finite positive number
        """
        self.stop_auto_save()

        if interval_ms is None:
            interval_ms = self.config.auto_save_interval_ms

        try:
            self._handle = self.timers.set_interval(self._on_timer, interval_ms)
        except ValueError as e:
            logger.warning("Autosave not started: %s", e)
            return False

        logger.info("Autosave every %s ms", interval_ms)
        return True

    def stop_auto_save(self) -> None:
        """Cancel autosaving. Safe to call when it is not running."""
        if self.timers.clear_interval(self._handle):
            logger.info("Autosave stopped")
        self._handle = None

    def _on_timer(self) -> None:
        slot_index = self.session.state.active_slot
        if slot_index is None:
            return

        if self.event_bus is not None:
            self.event_bus.publish(SaveEvent.AUTO_SAVE_TRIGGERED, slot_index=slot_index)
        self.session.save_active(SaveReason.AUTO)
