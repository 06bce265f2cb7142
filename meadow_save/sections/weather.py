"""
Weather section - calendar, clock and weather state.

Only durable fields are stored. Particle buffers and the sleep transition are
render-time state: they are never captured, and they are wiped whenever a
save is applied so a loaded game never resumes mid-animation or mid-sleep.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic.alias_generators import to_camel

from meadow_save.events import SaveEvent
from meadow_save.models import WeatherSnapshot
from meadow_save.sections.base import (
    SaveSection,
    call_hook,
    number_or,
    read_field,
    write_field,
)

if TYPE_CHECKING:
    from meadow_engine.core import Registry


logger = logging.getLogger(__name__)

WEATHER_FIELDS = (
    "current_time",
    "day",
    "month",
    "year",
    "season",
    "weather_type",
    "weather_timer",
    "next_weather_change",
    "ambient_darkness",
)

PARTICLE_BUFFERS = (
    "rain_particles",
    "fog_layers",
    "snow_particles",
    "lightning_flashes",
)

AWAKE_STATE = {
    "is_sleeping": False,
    "sleep_transition_progress": 0,
    "sleep_phase": None,
    "sleep_timer_acc": 0,
}


def reset_transient_state(weather: Any) -> None:
    """Empty every particle buffer and put the sleep state back to awake."""
    for buffer_name in PARTICLE_BUFFERS:
        buffer = read_field(weather, buffer_name)
        if isinstance(buffer, list):
            buffer.clear()
        else:
            write_field(weather, buffer_name, [])

    for field_name, value in AWAKE_STATE.items():
        write_field(weather, field_name, value)


def publish_time_changed(registry: Registry, weather: Any) -> None:
    registry.event_bus.publish(
        SaveEvent.TIME_CHANGED,
        day=read_field(weather, "day"),
        time=read_field(weather, "current_time"),
        weekday=call_hook(weather, "get_weekday"),
    )


class WeatherSection(SaveSection):
    """Saves the weather system. Stored as null when there is none."""

    name: ClassVar[str] = "weather"

    def gather(self, registry: Registry) -> WeatherSnapshot | None:
        weather = registry.get_system(self.config.names.weather)
        if weather is None:
            return None

        defaults = self.config.weather
        fields = {}
        for field_name in WEATHER_FIELDS:
            default = getattr(defaults, field_name)
            value = read_field(weather, field_name, default)
            fields[field_name] = value if isinstance(default, str) else number_or(value, default)
        return WeatherSnapshot(**fields)

    def apply(self, registry: Registry, data: Mapping[str, Any]) -> None:
        weather = registry.get_system(self.config.names.weather)
        if weather is None:
            logger.debug("No weather system registered, skipping calendar")
            return

        call_hook(weather, "pause")
        try:
            for field_name in WEATHER_FIELDS:
                value = data.get(to_camel(field_name))
                if value is not None:
                    write_field(weather, field_name, value)

            reset_transient_state(weather)
            call_hook(weather, "update_ambient_light")
            publish_time_changed(registry, weather)
        finally:
            call_hook(weather, "resume")

        logger.info(
            "Weather restored: %s, day %s",
            read_field(weather, "weather_type"), read_field(weather, "day"),
        )

    def reset_for_new_game(self, registry: Registry) -> bool:
        """
        Put the calendar back to the first morning of a new game.

        Uses the weather system's own reset() when it has one.

        Returns:
            False if no weather system is registered
        """
        weather = registry.get_system(self.config.names.weather)
        if weather is None:
            return False

        reset = read_field(weather, "reset")
        if callable(reset):
            reset()
        else:
            logger.warning("Weather system has no reset(), applying new-game defaults directly")
            defaults = self.config.weather
            for field_name in WEATHER_FIELDS:
                write_field(weather, field_name, getattr(defaults, field_name))
            reset_transient_state(weather)
            call_hook(weather, "update_ambient_light")

        publish_time_changed(registry, weather)
        logger.info("Game clock reset for new game")
        return True
