"""
Root document store - read-through cache over the backing store.

The whole save file is one JSON document under a single key. It is parsed
once, cached, and replaced wholesale on every write, so a save either lands
completely or not at all.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import jsonschema
from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from meadow_engine.storage import KeyValueStore, StorageError
from meadow_save.config import SaveConfig
from meadow_save.models import RootDocument, Slot


logger = logging.getLogger(__name__)


ROOT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "version": {"type": "integer"},
        "slots": {"type": "array"},
    },
    "required": ["version", "slots"],
}

SLOT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "meta": {"type": "object"},
        "data": {"type": ["object", "null"]},
    },
    "required": ["meta"],
}

_root_validator = jsonschema.Draft7Validator(ROOT_SCHEMA)
_slot_validator = jsonschema.Draft7Validator(SLOT_SCHEMA)


class RootStore:
    """
    Owns the versioned slot container.

    read() never fails: a missing key, unreadable store or corrupt JSON all
    yield the default document, and a structurally odd document is repaired
    rather than rejected. The cached instance is shared; callers that mutate
    should work on a deep copy and hand it to write().
    """

    def __init__(self, backend: KeyValueStore, config: SaveConfig | None = None):
        self.backend = backend
        self.config = config or SaveConfig()
        self._cache: RootDocument | None = None

    def default_document(self) -> RootDocument:
        """Create the canonical empty document."""
        return RootDocument(
            version=self.config.save_version,
            slots=[None] * self.config.max_slots,
        )

    def read(self) -> RootDocument:
        """Get the root document, loading it on first use."""
        if self._cache is None:
            self._cache = self._load()
        return self._cache

    def write(self, root: RootDocument) -> bool:
        """
        Persist the whole document and make it the cached one.

        Returns:
            True if the backing store accepted the write. On failure the
            previously cached document stays in place.
        """
        self._fit_slots(root)

        try:
            raw = json.dumps(
                root.to_data(), ensure_ascii=False, allow_nan=False, separators=(',', ':'),
            )
        except (TypeError, ValueError, PydanticSerializationError) as e:
            logger.error("Failed to serialize save document: %s", e)
            return False

        try:
            self.backend.set_item(self.config.root_key, raw)
        except StorageError as e:
            logger.error("Failed to write save document: %s", e)
            return False

        self._cache = root
        return True

    def clear_cache(self) -> None:
        """Force the next read() to go back to the backing store."""
        self._cache = None

    # Remembered active slot

    def read_active_slot(self) -> int | None:
        """
        Slot index stored under the active slot key.

        Returns:
            The index if the stored value is a decimal number, else None.
            Range checking is left to the caller.
        """
        try:
            raw = self.backend.get_item(self.config.active_slot_key)
        except StorageError as e:
            logger.error("Failed to read remembered slot: %s", e)
            return None

        if raw is None or not raw.strip().isdecimal():
            return None
        return int(raw)

    def write_active_slot(self, slot_index: int | None) -> bool:
        """
        Remember a slot index, or forget it when slot_index is None.

        Returns:
            True if the backing store accepted the change
        """
        key = self.config.active_slot_key
        try:
            if slot_index is None:
                self.backend.remove_item(key)
            else:
                self.backend.set_item(key, str(slot_index))
        except StorageError as e:
            logger.error("Failed to update remembered slot: %s", e)
            return False
        return True

    # Loading

    def _load(self) -> RootDocument:
        key = self.config.root_key

        try:
            raw = self.backend.get_item(key)
        except StorageError as e:
            logger.error("Failed to read save document: %s", e)
            return self.default_document()

        if raw is None:
            return self.default_document()

        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Save document under %r is not valid JSON, using defaults: %s", key, e)
            return self.default_document()

        if not isinstance(payload, dict):
            logger.warning("Save document under %r is not an object, using defaults", key)
            return self.default_document()

        for error in _root_validator.iter_errors(payload):
            logger.warning("Repairing save document under %r: %s", key, error.message)

        version = payload.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            version = self.config.save_version

        raw_slots = payload.get("slots")
        if not isinstance(raw_slots, list):
            raw_slots = []

        root = RootDocument(
            version=version,
            slots=[self._parse_slot(i, entry) for i, entry in enumerate(raw_slots)],
        )
        self._fit_slots(root)
        return root

    def _parse_slot(self, index: int, entry: Any) -> Slot | None:
        if entry is None:
            return None

        if not _slot_validator.is_valid(entry):
            logger.warning("Dropping malformed save slot %d", index)
            return None

        if entry.get("data") is None:
            entry = {**entry, "data": {}}

        try:
            return Slot.model_validate(entry)
        except ValidationError as e:
            logger.warning("Dropping unreadable save slot %d: %s", index, e)
            return None

    def _fit_slots(self, root: RootDocument) -> None:
        """Pad or truncate slots to exactly max_slots, keeping order."""
        count = self.config.max_slots
        if len(root.slots) != count:
            slots = list(root.slots[:count])
            slots.extend([None] * (count - len(slots)))
            root.slots = slots
