"""Lights for dimmable INSTEON devices."""

from __future__ import annotations

import logging
from typing import Any

from insteon_lib import InsteonDevice
from insteon_lib.device import ACTION_FADE

from homeassistant.components.light import (
    ATTR_BRIGHTNESS,
    ATTR_TRANSITION,
    ColorMode,
    LightEntity,
    LightEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

from .entity import InsteonPropertyEntity, async_setup_property_entities

_LOGGER = logging.getLogger(__name__)

LEVEL = "level"
FULL_LEVEL = 100


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up INSTEON dimmer lights from a config entry."""
    async_setup_property_entities(
        hass, entry, async_add_entities, _light_properties, InsteonLight
    )


def _light_properties(device: InsteonDevice) -> list[str]:
    prop = device.get_property(LEVEL)
    if prop is None or prop.read_only:
        return []
    return [LEVEL]


def brightness_to_level(brightness: int) -> int:
    """Map a 0-255 brightness to a 0-100 level; any lit brightness is at least 1."""
    level = round(brightness * 100 / 255)
    if brightness > 0:
        return max(1, level)
    return 0


def level_to_brightness(level: int) -> int:
    return round(level * 255 / 100)


class InsteonLight(InsteonPropertyEntity, LightEntity):
    """Representation of an INSTEON dimmer."""

    _attr_color_mode = ColorMode.BRIGHTNESS
    _attr_supported_color_modes = {ColorMode.BRIGHTNESS}

    @property
    def supported_features(self) -> LightEntityFeature:
        device = self.device
        if device is not None and ACTION_FADE in device.actions:
            return LightEntityFeature.TRANSITION
        return LightEntityFeature(0)

    @property
    def brightness(self) -> int | None:
        level = self.property_value
        if not isinstance(level, int):
            return None
        return level_to_brightness(level)

    @property
    def is_on(self) -> bool | None:
        level = self.property_value
        if not isinstance(level, int):
            return None
        return level > 0

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the light on, fading when a transition is given."""
        if ATTR_BRIGHTNESS in kwargs:
            level = brightness_to_level(kwargs[ATTR_BRIGHTNESS])
        else:
            level = FULL_LEVEL
        await self._async_apply(level, kwargs.get(ATTR_TRANSITION))

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the light off, fading when a transition is given."""
        await self._async_apply(0, kwargs.get(ATTR_TRANSITION))

    async def _async_apply(self, level: int, transition: float | None) -> None:
        if transition is not None and self.supported_features & LightEntityFeature.TRANSITION:
            _LOGGER.debug("Fading %s to %s over %ss", self._device_id, level, transition)
            await self._hub.async_perform_action(
                self._device_id, ACTION_FADE, {LEVEL: level, "duration": transition}
            )
            return
        await self._async_set_value(level)
