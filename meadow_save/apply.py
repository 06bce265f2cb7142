"""
Apply protocol - a stored snapshot back into live subsystems.

Sections are applied in registration order (player, inventory, currency,
weather, world, chests, then custom ones). Anything that is not a mapping
is ignored, so a missing or half-written record is a no-op rather than an
error.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from meadow_engine.core import EventBus
from meadow_save.events import SaveEvent
from meadow_save.models import Slot
from meadow_save.sections.base import SaveSection

if TYPE_CHECKING:
    from meadow_engine.core import Registry


logger = logging.getLogger(__name__)


def snapshot_data(record: Any) -> Mapping[str, Any] | None:
    """
    Extract the snapshot mapping from a record.

    Accepts a Slot, a slot-shaped mapping ({"meta": ..., "data": ...}) or a
    GameSnapshot. Returns None when there is nothing to apply.
    """
    if record is None:
        return None
    if isinstance(record, Slot):
        data = record.data
    elif isinstance(record, BaseModel):
        data = record.model_dump(mode='json', by_alias=True)
    elif isinstance(record, Mapping):
        data = record.get("data")
    else:
        return None

    if not isinstance(data, Mapping) or not data:
        return None
    return data


class ApplyProtocol:
    """
    Restores snapshots into the subsystems found in the Registry.

    Usage:
        applier = ApplyProtocol(registry, default_sections(config), event_bus)
        applier.apply_save_data(save_manager.load_slot(0))
    """

    def __init__(
        self,
        registry: Registry,
        sections: dict[str, SaveSection],
        event_bus: EventBus | None = None,
    ):
        self.registry = registry
        self.sections = sections
        self.event_bus = event_bus

    def apply_save_data(self, record: Any) -> bool:
        """
        Apply a save record to the live game.

        Args:
            record: Slot, slot-shaped mapping or GameSnapshot. None, {} and
                records without data are accepted and ignored.

        Returns:
            True if there was snapshot data to apply
        """
        data = snapshot_data(record)
        if data is None:
            logger.debug("Nothing to apply")
            return False

        applied: list[str] = []
        for name, section in self.sections.items():
            part = data.get(name)
            if not isinstance(part, Mapping):
                continue
            try:
                section.apply(self.registry, part)
            except Exception:
                logger.exception("Applying section %r failed, skipping it", name)
                continue
            applied.append(name)

        logger.info("Save data applied (%s)", ", ".join(applied) or "no sections")
        if self.event_bus is not None:
            self.event_bus.publish(SaveEvent.SAVE_APPLIED, sections=applied)
        return True
