"""Chest section - storage containers placed in the world."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from meadow_save.models import ChestSnapshot
from meadow_save.sections.base import (
    SaveSection,
    number_or,
    read_field,
    to_plain,
    write_field,
)

if TYPE_CHECKING:
    from meadow_engine.core import Registry


logger = logging.getLogger(__name__)


class ChestSection(SaveSection):
    """
    Saves every chest's position and contents.

    Loading merges into the live chest map: chests in the save are created
    or have their contents replaced, chests that are not in the save stay.
    """

    name: ClassVar[str] = "chests"

    def gather(self, registry: Registry) -> dict[str, ChestSnapshot] | None:
        chest_system = registry.get_system(self.config.names.chests)
        if chest_system is None:
            return None

        chests: dict[str, ChestSnapshot] = {}
        for chest_id, chest in read_field(chest_system, "chests", {}).items():
            chests[str(chest_id)] = ChestSnapshot(
                id=str(read_field(chest, "id", chest_id)),
                x=number_or(read_field(chest, "x"), None),
                y=number_or(read_field(chest, "y"), None),
                contents=to_plain(
                    read_field(chest, "contents", {}), exclude=(chest, chest_system),
                ) or {},
            )
        return chests

    def apply(self, registry: Registry, data: Mapping[str, Any]) -> None:
        chest_system = registry.get_system(self.config.names.chests)
        if chest_system is None:
            logger.debug("No chest system registered, skipping chests")
            return

        live = read_field(chest_system, "chests")
        if live is None:
            live = {}
            write_field(chest_system, "chests", live)

        for chest_id, saved in data.items():
            if not isinstance(saved, Mapping):
                continue

            if chest_id not in live:
                chest = {
                    "id": chest_id,
                    "x": saved.get("x"),
                    "y": saved.get("y"),
                    "contents": {},
                }
                add_chest = read_field(chest_system, "add_chest")
                if callable(add_chest):
                    add_chest(chest_id, chest)
                if chest_id not in live:
                    live[chest_id] = chest
                logger.debug("Created chest %s while restoring", chest_id)

            contents = saved.get("contents")
            write_field(live[chest_id], "contents", dict(contents) if isinstance(contents, Mapping) else {})

        logger.info("%d chests restored", len(data))
