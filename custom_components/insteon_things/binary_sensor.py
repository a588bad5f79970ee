"""Binary sensors for INSTEON sensors and remotes."""

from __future__ import annotations

from insteon_lib import InsteonDevice

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

from .coordinator import InsteonDataUpdateCoordinator
from .entity import InsteonPropertyEntity, async_setup_property_entities
from .hub import InsteonHub

_DEVICE_CLASSES: dict[str, BinarySensorDeviceClass | None] = {
    "open": BinarySensorDeviceClass.DOOR,
    "motion": BinarySensorDeviceClass.MOTION,
    "active": None,
    "on": None,
}

# Names for properties that share a device with another entity.
_NAMES = {
    "active": "Sensor",
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up INSTEON binary sensors from a config entry."""
    async_setup_property_entities(
        hass, entry, async_add_entities, _sensor_properties, InsteonBinarySensor
    )


def _sensor_properties(device: InsteonDevice) -> list[str]:
    names: list[str] = []
    for name, prop in device.properties.items():
        if name not in _DEVICE_CLASSES:
            continue
        if name == "on" and not prop.read_only:
            continue
        names.append(name)
    return names


class InsteonBinarySensor(InsteonPropertyEntity, BinarySensorEntity):
    """Representation of a read-only boolean INSTEON property."""

    def __init__(
        self,
        coordinator: InsteonDataUpdateCoordinator,
        hub: InsteonHub,
        device: InsteonDevice,
        property_name: str,
    ) -> None:
        """Initialize the binary sensor."""
        super().__init__(coordinator, hub, device, property_name)
        self._attr_device_class = _DEVICE_CLASSES[property_name]
        if property_name in _NAMES:
            self._attr_name = _NAMES[property_name]

    @property
    def is_on(self) -> bool | None:
        value = self.property_value
        return value if isinstance(value, bool) else None
