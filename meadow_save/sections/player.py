"""
Player section - position, facing and needs.

The position lives on the player entity (a shared object), the needs and the
active character on the player system. Either may be missing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from meadow_save.models import NeedsSnapshot, PlayerSnapshot
from meadow_save.sections.base import (
    SaveSection,
    is_real_number,
    number_or,
    read_field,
    str_or,
    write_field,
)

if TYPE_CHECKING:
    from meadow_engine.core import Registry


logger = logging.getLogger(__name__)

NEEDS = ("hunger", "thirst", "energy")


class PlayerSection(SaveSection):
    """Saves the player entity and the player system's needs."""

    name: ClassVar[str] = "player"

    def _lookup(self, registry: Registry) -> tuple[Any, Any]:
        names = self.config.names
        system = registry.get_system(names.player_system)
        player = registry.get_object(names.player_object)
        if player is None:
            player = read_field(system, "current_player")
        return player, system

    def current_character_id(self, registry: Registry) -> str:
        """Id of the character currently loaded by the player system."""
        system = registry.get_system(self.config.names.player_system)
        character = read_field(system, "active_character")
        return str(read_field(character, "id", self.config.default_character_id))

    def gather(self, registry: Registry) -> PlayerSnapshot:
        player, system = self._lookup(registry)
        defaults = self.config.player
        needs = read_field(system, "needs")

        return PlayerSnapshot(
            x=number_or(read_field(player, "x"), defaults.x),
            y=number_or(read_field(player, "y"), defaults.y),
            facing_direction=str_or(
                read_field(player, "facing_direction"), defaults.facing_direction
            ),
            character_id=self.current_character_id(registry),
            needs=NeedsSnapshot(
                hunger=number_or(read_field(needs, "hunger"), defaults.hunger),
                thirst=number_or(read_field(needs, "thirst"), defaults.thirst),
                energy=number_or(read_field(needs, "energy"), defaults.energy),
            ),
        )

    def fallback(self) -> PlayerSnapshot:
        defaults = self.config.player
        return PlayerSnapshot(
            x=defaults.x,
            y=defaults.y,
            facing_direction=defaults.facing_direction,
            character_id=self.config.default_character_id,
        )

    def apply(self, registry: Registry, data: Mapping[str, Any]) -> None:
        player, system = self._lookup(registry)

        if player is not None:
            for axis in ("x", "y"):
                value = data.get(axis)
                if is_real_number(value):
                    write_field(player, axis, value)
            facing = data.get("facingDirection")
            if isinstance(facing, str):
                write_field(player, "facing_direction", facing)
        else:
            logger.debug("No player entity registered, skipping position")

        saved_needs = data.get("needs")
        live_needs = read_field(system, "needs")
        if not isinstance(saved_needs, Mapping) or live_needs is None:
            return

        saved_character = str(data.get("characterId", self.config.default_character_id))
        current_character = self.current_character_id(registry)
        if saved_character != current_character:
            logger.info(
                "Save belongs to character %r but %r is loaded, keeping current needs",
                saved_character, current_character,
            )
            return

        defaults = self.config.player
        for need in NEEDS:
            write_field(live_needs, need, number_or(saved_needs.get(need), getattr(defaults, need)))
