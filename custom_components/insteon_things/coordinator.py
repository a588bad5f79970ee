"""Data update coordinator for the INSTEON things integration."""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any, TypeAlias

from insteon_lib import (
    DeviceAdded,
    DeviceEventRaised,
    DeviceRemoved,
    InsteonDevice,
    PairingPrompt,
    PropertyChanged,
)

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from .const import DOMAIN
from .hub import ConnectionStateChanged, InsteonHub

_LOGGER = logging.getLogger(__name__)

DeviceSnapshot: TypeAlias = dict[str, InsteonDevice]


class InsteonDataUpdateCoordinator(DataUpdateCoordinator[DeviceSnapshot]):
    """Push registry and property changes from the hub to entities."""

    def __init__(self, hass: HomeAssistant, hub: InsteonHub, entry: ConfigEntry) -> None:
        """Initialize the coordinator."""
        super().__init__(hass, _LOGGER, name=DOMAIN, config_entry=entry)
        self._hub = hub
        self._unsubscribe: Callable[[], None] | None = None

    async def async_start(self) -> None:
        """Subscribe to hub events and seed the device snapshot."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = self._hub.subscribe(self._handle_event)
        self._set_snapshot()

    async def async_stop(self) -> None:
        """Stop coordinating updates."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _handle_event(self, event: Any) -> None:
        """Handle hub events on the Home Assistant event loop."""
        self.hass.loop.call_soon_threadsafe(self._process_event, event)

    @callback
    def _process_event(self, event: Any) -> None:
        """Process an event from the hub."""
        if isinstance(event, (DeviceEventRaised, PairingPrompt)):
            return
        if isinstance(event, PropertyChanged):
            _LOGGER.debug(
                "Property changed: %s %s=%s", event.device_id, event.name, event.value
            )
        elif isinstance(event, (DeviceAdded, DeviceRemoved)):
            _LOGGER.debug("Registry changed: %s %s", event.kind, event.device_id)
        elif isinstance(event, ConnectionStateChanged):
            _LOGGER.debug("Modem connected: %s", event.connected)
        self._set_snapshot()

    def _set_snapshot(self) -> None:
        """Publish a fresh copy of the device registry."""
        self.async_set_updated_data(dict(self._hub.devices))
