"""Hub wrapper around the INSTEON modem transport and adapter."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import dataclass
import logging
from typing import Any, ClassVar

from insteon_lib import (
    AdapterConfig,
    DeviceEventRaised,
    Event,
    InsteonAdapter,
    InsteonDevice,
    InsteonError,
    ModemInfo,
    PairingInProgressError,
    PairingOutcome,
    PairingPrompt,
    PlmConfig,
    PlmTransport,
    PropertyReadOnlyError,
    UnknownDeviceError,
    normalize_address,
)
from insteon_lib.messages import HEARTBEAT_GROUP, LOW_BATTERY_GROUP

from homeassistant.core import HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError

from .const import (
    ATTR_ADDRESS,
    ATTR_EVENT,
    ATTR_INSTEON_ID,
    ATTR_MESSAGE,
    EVENT_DEVICE,
    EVENT_PAIRING,
)
from .storage import InsteonLinkStore

_LOGGER = logging.getLogger(__name__)

EventCallback = Callable[[Event], None]

_LINK_GROUPS = {
    HEARTBEAT_GROUP: "heartbeat",
    LOW_BATTERY_GROUP: "low battery",
}


@dataclass(frozen=True, slots=True)
class ConnectionStateChanged(Event):
    """Modem connection went up or down."""

    KIND: ClassVar[str] = "connection_state_changed"

    connected: bool


class InsteonHub:
    """Own the modem connection and the device adapter for one config entry."""

    def __init__(
        self,
        hass: HomeAssistant,
        port: str,
        store: InsteonLinkStore,
        *,
        poll_interval_s: float,
        link_timeout_s: float,
    ) -> None:
        """Initialize the hub."""
        self._hass = hass
        self._port = port
        self._store = store
        self._transport = PlmTransport(
            PlmConfig(port=port), on_connection_lost=self._handle_connection_lost
        )
        self._adapter = InsteonAdapter(
            self._transport,
            store,
            AdapterConfig(
                poll_interval_s=poll_interval_s,
                link_timeout_s=link_timeout_s,
                secondary_link_timeout_s=link_timeout_s,
            ),
        )
        self._modem_info: ModemInfo | None = None
        self._subscribers: list[EventCallback] = []
        self._unsubscribe_adapter: Callable[[], None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._reconnect_attempts = 0
        self._stopping = False
        self._unavailable_logged = False

    @property
    def adapter(self) -> InsteonAdapter:
        return self._adapter

    @property
    def port(self) -> str:
        return self._port

    @property
    def modem_info(self) -> ModemInfo | None:
        return self._modem_info

    @property
    def is_ready(self) -> bool:
        return self._transport.connected

    @property
    def devices(self) -> Mapping[str, InsteonDevice]:
        return self._adapter.devices

    async def async_connect(self) -> None:
        """Open the modem, identify it, restore devices and start the adapter."""
        self._stopping = False
        await self._async_connect()
        if self._unsubscribe_adapter is None:
            self._unsubscribe_adapter = self._adapter.subscribe(self._handle_adapter_event)
        await self._adapter.async_restore_devices()
        await self._adapter.async_start()

    async def _async_connect(self) -> None:
        await self._transport.async_connect()
        try:
            self._modem_info = await self._transport.async_get_modem_info()
        except InsteonError:
            await self._transport.async_close()
            raise
        _LOGGER.debug(
            "Modem %s ready (category 0x%02X, subcategory 0x%02X, firmware 0x%02X)",
            self._modem_info.address,
            self._modem_info.category,
            self._modem_info.subcategory,
            self._modem_info.firmware,
        )
        if self._unavailable_logged:
            _LOGGER.info("Modem connection restored")
            self._unavailable_logged = False
        self._emit(ConnectionStateChanged(connected=True))

    async def async_disconnect(self) -> None:
        """Stop the adapter and close the modem connection."""
        self._stopping = True
        self._cancel_reconnect()
        await self._adapter.async_stop()
        if self._unsubscribe_adapter is not None:
            self._unsubscribe_adapter()
            self._unsubscribe_adapter = None
        await self._transport.async_close()

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """Subscribe to adapter events and connection changes."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _emit(self, event: Event) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as err:  # noqa: BLE001
                _LOGGER.warning("Hub subscriber failed for %s: %s", event.kind, err)

    def _handle_adapter_event(self, event: Event) -> None:
        """Forward adapter events to subscribers and the event bus."""
        self._emit(event)
        if isinstance(event, DeviceEventRaised):
            device = self._adapter.get_device(event.device_id)
            self._hass.bus.async_fire(
                EVENT_DEVICE,
                {
                    ATTR_INSTEON_ID: event.device_id,
                    ATTR_ADDRESS: device.address if device is not None else None,
                    ATTR_EVENT: event.name,
                    **dict(event.data),
                },
            )
        elif isinstance(event, PairingPrompt):
            self._hass.bus.async_fire(
                EVENT_PAIRING,
                {ATTR_MESSAGE: event.message, ATTR_INSTEON_ID: event.device_id},
            )

    # -------------------------
    # Device helpers
    # -------------------------

    def get_device(self, device_id: str) -> InsteonDevice | None:
        return self._adapter.get_device(device_id)

    def require_device(self, address: str) -> InsteonDevice:
        """Look up a device by address for a service call."""
        try:
            normalized = normalize_address(address)
        except ValueError as err:
            raise ServiceValidationError(str(err)) from err
        device = self._adapter.get_device_by_address(normalized)
        if device is None:
            raise ServiceValidationError(f"No INSTEON device with address {normalized}")
        return device

    async def async_set_property(self, device_id: str, name: str, value: Any) -> Any:
        device = self._adapter.get_device(device_id)
        if device is None:
            raise HomeAssistantError(f"Device {device_id} is not available")
        try:
            return await device.async_set_property(name, value)
        except PropertyReadOnlyError as err:
            raise ServiceValidationError(str(err)) from err
        except ValueError as err:
            raise ServiceValidationError(str(err)) from err
        except InsteonError as err:
            raise HomeAssistantError(
                f"Setting {name} on {device.title} failed: {err}"
            ) from err

    async def async_perform_action(
        self, device_id: str, name: str, action_input: Mapping[str, Any] | None = None
    ) -> None:
        device = self._adapter.get_device(device_id)
        if device is None:
            raise HomeAssistantError(f"Device {device_id} is not available")
        if name not in device.actions:
            raise ServiceValidationError(f"{device.title} does not support {name}")
        try:
            await device.async_perform_action(name, action_input)
        except ValueError as err:
            raise ServiceValidationError(str(err)) from err
        except InsteonError as err:
            raise HomeAssistantError(f"{name} on {device.title} failed: {err}") from err

    # -------------------------
    # Operator actions
    # -------------------------

    async def async_scan(self) -> list[str]:
        try:
            return await self._adapter.async_scan()
        except InsteonError as err:
            raise HomeAssistantError(f"Scan failed: {err}") from err

    def start_pairing(self, timeout_s: float | None = None) -> asyncio.Task[PairingOutcome]:
        try:
            task = self._adapter.start_pairing(timeout_s)
        except PairingInProgressError as err:
            raise HomeAssistantError("Pairing is already in progress") from err
        task.add_done_callback(_log_pairing_result)
        return task

    async def async_cancel_pairing(self) -> bool:
        return await self._adapter.async_cancel_pairing()

    async def async_link_group(
        self, address: str, group: int, timeout_s: float | None = None
    ) -> None:
        """Link a battery device's heartbeat or low battery group to the modem."""
        device = self.require_device(address)
        if not device.battery_powered:
            raise ServiceValidationError(
                f"{device.title} is not battery powered and has no {_LINK_GROUPS[group]} group"
            )
        if self._adapter.pairing:
            raise HomeAssistantError("Pairing is already in progress")
        try:
            record = await device.async_link(group=group, timeout_s=timeout_s)
        except InsteonError as err:
            raise HomeAssistantError(
                f"Linking the {_LINK_GROUPS[group]} group failed: {err}"
            ) from err
        if record is None:
            raise HomeAssistantError(f"{device.title} did not answer the link request")
        self._adapter.prompt(f"Linked the {_LINK_GROUPS[group]} group of {device.title}", device)

    async def async_remove_device(self, address: str) -> InsteonDevice:
        device = self.require_device(address)
        try:
            return await self._adapter.async_remove_device(device.id)
        except UnknownDeviceError as err:
            raise ServiceValidationError(str(err)) from err

    # -------------------------
    # Reconnect
    # -------------------------

    def _handle_connection_lost(self, err: Exception) -> None:
        """Handle a dropped modem connection from the transport reader."""
        self._log_unavailable()
        self._emit(ConnectionStateChanged(connected=False))
        self._hass.loop.call_soon_threadsafe(self._schedule_reconnect)

    @callback
    def _schedule_reconnect(self) -> None:
        """Schedule reconnection attempts when the modem disconnects."""
        if self._stopping:
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        _LOGGER.debug("Creating reconnect task")
        self._reconnect_task = self._hass.async_create_task(
            self._async_reconnect_loop()
        )

    @callback
    def _cancel_reconnect(self) -> None:
        """Cancel any scheduled reconnection attempts."""
        if self._reconnect_task is None:
            return
        if not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._reconnect_task = None
        self._reconnect_attempts = 0

    def _log_unavailable(self) -> None:
        """Log the modem as unavailable once."""
        if self._unavailable_logged:
            return
        _LOGGER.info("Modem connection lost")
        self._unavailable_logged = True

    async def _async_reconnect_loop(self) -> None:
        """Reconnect with exponential backoff until successful or stopped."""
        while not self._stopping:
            _LOGGER.debug("Reconnect attempt %s starting", self._reconnect_attempts + 1)
            try:
                await self._transport.async_close()
                await self._async_connect()
            except InsteonError as err:
                _LOGGER.debug("Reconnect attempt failed: %s", err)
            else:
                self._reconnect_attempts = 0
                self._adapter.create_background_task(
                    self._adapter.async_poll_all(), name="insteon resync poll"
                )
                return
            self._reconnect_attempts += 1
            delay = min(300, 2**self._reconnect_attempts)
            _LOGGER.debug(
                "Reconnect attempt %s sleeping for %s seconds",
                self._reconnect_attempts,
                delay,
            )
            await asyncio.sleep(delay)


def _log_pairing_result(task: asyncio.Task[PairingOutcome]) -> None:
    if task.cancelled():
        _LOGGER.debug("Pairing cancelled")
        return
    err = task.exception()
    if err is not None:
        _LOGGER.error("Pairing failed: %s", err)
        return
    _LOGGER.debug("Pairing finished: %s", task.result().value)


async def async_validate_modem(port: str) -> ModemInfo:
    """Open the modem once to read its identity; used by the config flow."""
    transport = PlmTransport(PlmConfig(port=port))
    try:
        await transport.async_connect()
        return await transport.async_get_modem_info()
    finally:
        await transport.async_close()


__all__ = [
    "ConnectionStateChanged",
    "InsteonHub",
    "async_validate_modem",
]
