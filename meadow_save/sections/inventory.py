"""
Inventory section - item stacks per category plus the equipped item.

Restoring goes through the inventory's own add_item() so its stacking rules
apply; stacks it refuses are logged and dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from meadow_save.models import InventorySnapshot, ItemStackSnapshot
from meadow_save.sections.base import (
    SaveSection,
    call_hook,
    is_real_number,
    read_field,
    to_plain,
    write_field,
)

if TYPE_CHECKING:
    from meadow_engine.core import Registry


logger = logging.getLogger(__name__)


class InventorySection(SaveSection):
    """Saves the inventory system. Left out when there is none."""

    name: ClassVar[str] = "inventory"

    def gather(self, registry: Registry) -> InventorySnapshot | None:
        inventory = registry.get_system(self.config.names.inventory)
        if inventory is None:
            return None

        categories: dict[str, list[ItemStackSnapshot]] = {}
        for category_name, category in read_field(inventory, "categories", {}).items():
            stacks = []
            for item in read_field(category, "items", []):
                item_id = read_field(item, "id")
                if item_id is None:
                    continue
                quantity = read_field(item, "quantity", 1)
                stacks.append(ItemStackSnapshot(
                    id=item_id,
                    quantity=quantity if is_real_number(quantity) else 1,
                ))
            categories[str(category_name)] = stacks

        return InventorySnapshot(
            categories=categories,
            equipped=to_plain(read_field(inventory, "equipped"), exclude=(inventory,)),
        )

    def apply(self, registry: Registry, data: Mapping[str, Any]) -> None:
        inventory = registry.get_system(self.config.names.inventory)
        saved_categories = data.get("categories")
        if inventory is None or not isinstance(saved_categories, Mapping):
            return

        live_categories = read_field(inventory, "categories", {})
        for category in live_categories.values():
            items = read_field(category, "items")
            if isinstance(items, list):
                items.clear()
            else:
                write_field(category, "items", [])

        failed = []
        for category_name, stacks in saved_categories.items():
            category = live_categories.get(category_name)
            if category is None or not isinstance(stacks, list):
                failed.append(category_name)
                continue
            for stack in stacks:
                if not isinstance(stack, Mapping) or stack.get("id") is None:
                    continue
                if not self._add(inventory, category, stack["id"], stack.get("quantity", 1)):
                    failed.append(stack["id"])

        if failed:
            logger.warning("Could not restore inventory entries: %s", failed)

        equipped = data.get("equipped")
        if equipped is not None:
            if self._holds(live_categories, equipped):
                write_field(inventory, "equipped", equipped)
            else:
                logger.warning("Equipped item %r is not in the restored inventory", equipped)
                write_field(inventory, "equipped", None)

        call_hook(inventory, "schedule_ui_update")

    @staticmethod
    def _add(inventory: Any, category: Any, item_id: Any, quantity: Any) -> bool:
        add_item = read_field(inventory, "add_item")
        if callable(add_item):
            return bool(add_item(item_id, quantity))
        read_field(category, "items").append({"id": item_id, "quantity": quantity})
        return True

    @staticmethod
    def _holds(categories: Mapping[str, Any], equipped: Any) -> bool:
        equipped_id = read_field(equipped, "id", equipped) if isinstance(equipped, Mapping) else equipped
        for category in categories.values():
            for item in read_field(category, "items", []):
                quantity = read_field(item, "quantity", 0)
                if read_field(item, "id") == equipped_id and is_real_number(quantity) and quantity > 0:
                    return True
        return False
