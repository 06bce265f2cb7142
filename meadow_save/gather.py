"""
Gather protocol - live subsystem state to a GameSnapshot.

Subsystems may register after the save core does, so every section degrades
to its documented defaults instead of failing. Gathering never modifies a
subsystem.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from meadow_save.config import SaveConfig
from meadow_save.models import GameSnapshot
from meadow_save.sections.base import SaveSection, to_plain

if TYPE_CHECKING:
    from meadow_engine.core import Registry


logger = logging.getLogger(__name__)

# Built-in sections that are stored even when they gathered nothing.
NULLABLE_SECTIONS = frozenset({"weather"})


class GatherProtocol:
    """
    Builds snapshots by asking every section for its part.

    Usage:
        gatherer = GatherProtocol(registry, default_sections(config), config)
        snapshot = gatherer.gather()
        data = snapshot.to_data()
    """

    def __init__(
        self,
        registry: Registry,
        sections: dict[str, SaveSection],
        config: SaveConfig | None = None,
    ):
        self.registry = registry
        self.sections = sections
        self.config = config or SaveConfig()

    def gather(self) -> GameSnapshot:
        """Capture a value copy of every registered section."""
        parts: dict[str, Any] = {}

        for name, section in self.sections.items():
            try:
                part = section.gather(self.registry)
            except Exception:
                logger.exception("Gathering section %r failed, using its fallback", name)
                part = section.fallback()

            if part is None and name not in NULLABLE_SECTIONS:
                continue
            parts[name] = part.to_data() if isinstance(part, BaseModel) else to_plain(part)

        try:
            return GameSnapshot.model_validate(parts)
        except ValidationError as e:
            # A custom section cannot break this; only a built-in part with odd
            # types can. Fall back to the built-ins' defaults for those.
            logger.error("Gathered snapshot did not validate, using section fallbacks: %s", e)
            return self._repair(parts, e)

    def _repair(self, parts: dict[str, Any], error: ValidationError) -> GameSnapshot:
        broken = {str(err["loc"][0]) for err in error.errors() if err["loc"]}
        for name in broken:
            section = self.sections.get(name)
            fallback = section.fallback() if section is not None else None
            if fallback is None:
                parts.pop(name, None)
            else:
                parts[name] = fallback.to_data() if isinstance(fallback, BaseModel) else fallback
        return GameSnapshot.model_validate(parts)
