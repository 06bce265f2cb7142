"""Currency section - the player's money balance."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from meadow_save.models import CurrencySnapshot
from meadow_save.sections.base import (
    SaveSection,
    call_hook,
    is_real_number,
    number_or,
    read_field,
    write_field,
)

if TYPE_CHECKING:
    from meadow_engine.core import Registry


logger = logging.getLogger(__name__)


class CurrencySection(SaveSection):
    """Saves the currency system's current_money."""

    name: ClassVar[str] = "currency"

    def gather(self, registry: Registry) -> CurrencySnapshot:
        currency = registry.get_system(self.config.names.currency)
        money = read_field(currency, "current_money")
        return CurrencySnapshot(money=number_or(money, self.config.default_money))

    def fallback(self) -> CurrencySnapshot:
        return CurrencySnapshot(money=self.config.default_money)

    def apply(self, registry: Registry, data: Mapping[str, Any]) -> None:
        currency = registry.get_system(self.config.names.currency)
        if currency is None:
            logger.debug("No currency system registered, skipping balance")
            return

        money = data.get("money")
        if not is_real_number(money) or money < 0:
            logger.warning("Ignoring invalid saved balance: %r", money)
            return

        write_field(currency, "current_money", money)
        call_hook(currency, "notify_change")
