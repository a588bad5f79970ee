"""Shared entity helpers for the INSTEON things integration."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from insteon_lib import InsteonDevice
from insteon_lib.products import DEFAULT_PRODUCT_NAME, product_name

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity import Entity
from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DATA_COORDINATOR, DATA_HUB, DOMAIN, MANUFACTURER
from .coordinator import InsteonDataUpdateCoordinator
from .hub import InsteonHub


def build_unique_id(device_id: str, property_name: str) -> str:
    """Return the stable unique id for one device property."""
    return f"{device_id}:{property_name}"


def device_info_for_device(device: InsteonDevice) -> DeviceInfo:
    """Build device registry info for an INSTEON device."""
    return DeviceInfo(
        identifiers={(DOMAIN, device.id)},
        name=device.title,
        manufacturer=MANUFACTURER,
        model=product_name(device.category, device.subcategory) or DEFAULT_PRODUCT_NAME,
        model_id=f"{device.category:02X}.{device.subcategory:02X}",
        serial_number=device.address,
    )


def async_setup_property_entities(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
    select: Callable[[InsteonDevice], Iterable[str]],
    factory: Callable[
        [InsteonDataUpdateCoordinator, InsteonHub, InsteonDevice, str], Entity
    ],
) -> None:
    """Add one entity per selected property, now and for devices added later."""
    data = hass.data[DOMAIN][entry.entry_id]
    hub: InsteonHub = data[DATA_HUB]
    coordinator: InsteonDataUpdateCoordinator = data[DATA_COORDINATOR]
    known_ids: set[str] = set()

    @callback
    def _async_add_properties() -> None:
        devices = coordinator.data
        if not devices:
            return
        entities: list[Entity] = []
        for device in devices.values():
            for property_name in select(device):
                unique_id = build_unique_id(device.id, property_name)
                if unique_id in known_ids:
                    continue
                known_ids.add(unique_id)
                entities.append(factory(coordinator, hub, device, property_name))
        if entities:
            async_add_entities(entities)

    _async_add_properties()
    entry.async_on_unload(coordinator.async_add_listener(_async_add_properties))


class InsteonPropertyEntity(CoordinatorEntity[InsteonDataUpdateCoordinator]):
    """Base entity backed by one property of an INSTEON device."""

    _attr_has_entity_name = True
    _attr_name = None

    def __init__(
        self,
        coordinator: InsteonDataUpdateCoordinator,
        hub: InsteonHub,
        device: InsteonDevice,
        property_name: str,
    ) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self._hub = hub
        self._device_id = device.id
        self._property_name = property_name
        self._attr_unique_id = build_unique_id(device.id, property_name)
        self._attr_device_info = device_info_for_device(device)

    @property
    def device(self) -> InsteonDevice | None:
        devices = self.coordinator.data
        if not devices:
            return None
        return devices.get(self._device_id)

    @property
    def available(self) -> bool:
        """Return if the entity is available."""
        return self._hub.is_ready and self.device is not None

    @property
    def property_value(self) -> Any:
        device = self.device
        if device is None:
            return None
        return device.get_property_value(self._property_name)

    async def _async_set_value(self, value: Any) -> None:
        await self._hub.async_set_property(self._device_id, self._property_name, value)
