"""Switches for INSTEON relays."""

from __future__ import annotations

from typing import Any

from insteon_lib import InsteonDevice

from homeassistant.components.switch import SwitchEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

from .entity import InsteonPropertyEntity, async_setup_property_entities

ON = "on"


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up INSTEON relay switches from a config entry."""
    async_setup_property_entities(
        hass, entry, async_add_entities, _switch_properties, InsteonSwitch
    )


def _switch_properties(device: InsteonDevice) -> list[str]:
    prop = device.get_property(ON)
    if prop is None or prop.read_only or device.get_property("level") is not None:
        return []
    return [ON]


class InsteonSwitch(InsteonPropertyEntity, SwitchEntity):
    """Representation of an INSTEON on/off relay."""

    @property
    def is_on(self) -> bool | None:
        value = self.property_value
        return value if isinstance(value, bool) else None

    async def async_turn_on(self, **kwargs: Any) -> None:
        """Turn the relay on."""
        await self._async_set_value(True)

    async def async_turn_off(self, **kwargs: Any) -> None:
        """Turn the relay off."""
        await self._async_set_value(False)
