"""World section - placed entities (trees, rocks, buildings, animals...)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from meadow_save.sections.base import (
    SaveSection,
    call_hook,
    read_field,
    to_plain,
    write_field,
)

if TYPE_CHECKING:
    from meadow_engine.core import Registry


logger = logging.getLogger(__name__)


class WorldSection(SaveSection):
    """
    Saves each configured entity collection of the world object.

    Entities are copied into plain dicts, without their links back to the
    world. An entity that cannot be copied is skipped on its own. Loading
    replaces a collection wholesale; lists are replaced in place so systems
    holding a reference to them see the loaded entities.
    """

    name: ClassVar[str] = "world"

    def gather(self, registry: Registry) -> dict[str, list[dict[str, Any]]]:
        world = registry.get_object(self.config.names.world)
        collections: dict[str, list[dict[str, Any]]] = {}

        for collection in self.config.world_collections:
            entities = read_field(world, collection, [])
            copies = []
            for index, entity in enumerate(entities):
                try:
                    plain = to_plain(entity, exclude=(world, entities))
                except Exception:
                    logger.exception("Skipping unsaveable entity %s[%d]", collection, index)
                    continue
                if isinstance(plain, dict):
                    copies.append(plain)
            collections[collection] = copies

        return collections

    def fallback(self) -> None:
        # Leaving the world out means loading keeps the live entities
        return None

    def apply(self, registry: Registry, data: Mapping[str, Any]) -> None:
        world = registry.get_object(self.config.names.world)
        if world is None:
            logger.debug("No world registered, skipping entities")
            return

        restored = 0
        for collection, entities in data.items():
            if not isinstance(entities, list):
                logger.warning("Ignoring malformed world collection %r", collection)
                continue

            loaded = [dict(entity) for entity in entities if isinstance(entity, Mapping)]
            live = read_field(world, collection)
            if isinstance(live, list):
                live[:] = loaded
            else:
                write_field(world, collection, loaded)
            restored += len(loaded)

        call_hook(world, "mark_changed")
        logger.info("World restored (%d entities)", restored)
