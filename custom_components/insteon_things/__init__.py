"""Set up the INSTEON things integration."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_VENDOR_PATH = Path(__file__).resolve().parent / "vendor" / "insteon"
if _VENDOR_PATH.exists() and str(_VENDOR_PATH) not in sys.path:
    sys.path.insert(0, str(_VENDOR_PATH))

from insteon_lib import InsteonError, id_to_address
from insteon_lib.device import ACTION_FADE, ACTION_POLL
from insteon_lib.messages import HEARTBEAT_GROUP, LOW_BATTERY_GROUP
import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_DEVICE, Platform
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import ConfigEntryNotReady, ServiceValidationError
from homeassistant.helpers import config_validation as cv, device_registry as dr
from homeassistant.helpers.typing import ConfigType

from .const import (
    ATTR_ADDRESS,
    ATTR_DURATION,
    ATTR_LEVEL,
    ATTR_TIMEOUT,
    CONF_LINK_TIMEOUT,
    CONF_POLL_INTERVAL,
    DATA_COORDINATOR,
    DATA_HUB,
    DEFAULT_LINK_TIMEOUT,
    DEFAULT_POLL_INTERVAL_HOURS,
    DOMAIN,
    MAX_LINK_TIMEOUT,
    SERVICE_CANCEL_PAIRING,
    SERVICE_FADE,
    SERVICE_LINK_HEARTBEAT,
    SERVICE_LINK_LOW_BATTERY,
    SERVICE_PAIR,
    SERVICE_POLL,
    SERVICE_REMOVE_DEVICE,
    SERVICE_SCAN,
)
from .coordinator import InsteonDataUpdateCoordinator
from .hub import InsteonHub
from .storage import InsteonLinkStore

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [
    Platform.BINARY_SENSOR,
    Platform.LIGHT,
    Platform.SWITCH,
]

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)

ATTR_CONFIG_ENTRY_ID = "config_entry_id"

_TIMEOUT = vol.All(vol.Coerce(float), vol.Range(min=1, max=MAX_LINK_TIMEOUT))

SERVICE_ENTRY_SCHEMA = vol.Schema({vol.Optional(ATTR_CONFIG_ENTRY_ID): cv.string})
SERVICE_PAIR_SCHEMA = SERVICE_ENTRY_SCHEMA.extend({vol.Optional(ATTR_TIMEOUT): _TIMEOUT})
SERVICE_ADDRESS_SCHEMA = vol.Schema({vol.Required(ATTR_ADDRESS): cv.string})
SERVICE_LINK_SCHEMA = SERVICE_ADDRESS_SCHEMA.extend({vol.Optional(ATTR_TIMEOUT): _TIMEOUT})
SERVICE_FADE_SCHEMA = SERVICE_ADDRESS_SCHEMA.extend(
    {
        vol.Required(ATTR_LEVEL): vol.All(vol.Coerce(int), vol.Range(min=0, max=100)),
        vol.Required(ATTR_DURATION): vol.All(vol.Coerce(float), vol.Range(min=0)),
    }
)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Register the integration services."""
    _async_register_services(hass)
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up an INSTEON modem from a config entry."""
    port = entry.data[CONF_DEVICE]
    poll_hours = entry.options.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL_HOURS)
    link_timeout = entry.options.get(CONF_LINK_TIMEOUT, DEFAULT_LINK_TIMEOUT)
    hub = InsteonHub(
        hass,
        port,
        InsteonLinkStore(hass, entry.entry_id),
        poll_interval_s=float(poll_hours) * 60 * 60,
        link_timeout_s=float(link_timeout),
    )
    coordinator = InsteonDataUpdateCoordinator(hass, hub, entry)
    await coordinator.async_start()
    try:
        await hub.async_connect()
    except InsteonError as err:
        _LOGGER.debug("Failed to set up modem at %s: %s", port, err)
        await coordinator.async_stop()
        await hub.async_disconnect()
        raise ConfigEntryNotReady(f"Unable to reach the INSTEON modem at {port}") from err

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        DATA_HUB: hub,
        DATA_COORDINATOR: coordinator,
    }
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))
    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload an INSTEON config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    data = hass.data.get(DOMAIN, {}).pop(entry.entry_id, None)
    if data is not None:
        coordinator: InsteonDataUpdateCoordinator | None = data.get(DATA_COORDINATOR)
        hub: InsteonHub | None = data.get(DATA_HUB)
        if coordinator is not None:
            await coordinator.async_stop()
        if hub is not None:
            await hub.async_disconnect()
    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Delete the persisted link records of a removed entry."""
    await InsteonLinkStore(hass, entry.entry_id).async_remove()


async def async_remove_config_entry_device(
    hass: HomeAssistant, entry: ConfigEntry, device_entry: dr.DeviceEntry
) -> bool:
    """Forget a device removed from the device registry UI."""
    data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    if data is None:
        return True
    hub: InsteonHub = data[DATA_HUB]
    for domain, identifier in device_entry.identifiers:
        if domain != DOMAIN or hub.get_device(identifier) is None:
            continue
        await hub.async_remove_device(id_to_address(identifier))
    return True


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    await hass.config_entries.async_reload(entry.entry_id)


def _hubs(hass: HomeAssistant) -> dict[str, InsteonHub]:
    return {
        entry_id: data[DATA_HUB] for entry_id, data in hass.data.get(DOMAIN, {}).items()
    }


def _hub_for_call(hass: HomeAssistant, call: ServiceCall) -> InsteonHub:
    hubs = _hubs(hass)
    entry_id = call.data.get(ATTR_CONFIG_ENTRY_ID)
    if entry_id is not None:
        if entry_id not in hubs:
            raise ServiceValidationError(f"No loaded INSTEON modem for entry {entry_id}")
        return hubs[entry_id]
    if len(hubs) != 1:
        raise ServiceValidationError(
            "Specify config_entry_id when zero or several INSTEON modems are loaded"
        )
    return next(iter(hubs.values()))


def _hub_for_address(hass: HomeAssistant, address: str) -> InsteonHub:
    hubs = list(_hubs(hass).values())
    for hub in hubs:
        try:
            hub.require_device(address)
        except ServiceValidationError:
            continue
        return hub
    if hubs:
        hubs[0].require_device(address)
    raise ServiceValidationError("No INSTEON modem is loaded")


def _async_register_services(hass: HomeAssistant) -> None:
    async def _async_scan(call: ServiceCall) -> ServiceResponse:
        added = await _hub_for_call(hass, call).async_scan()
        return {"added": added}

    async def _async_pair(call: ServiceCall) -> None:
        _hub_for_call(hass, call).start_pairing(call.data.get(ATTR_TIMEOUT))

    async def _async_cancel_pairing(call: ServiceCall) -> None:
        await _hub_for_call(hass, call).async_cancel_pairing()

    async def _async_link_heartbeat(call: ServiceCall) -> None:
        address = call.data[ATTR_ADDRESS]
        await _hub_for_address(hass, address).async_link_group(
            address, HEARTBEAT_GROUP, call.data.get(ATTR_TIMEOUT)
        )

    async def _async_link_low_battery(call: ServiceCall) -> None:
        address = call.data[ATTR_ADDRESS]
        await _hub_for_address(hass, address).async_link_group(
            address, LOW_BATTERY_GROUP, call.data.get(ATTR_TIMEOUT)
        )

    async def _async_remove_device(call: ServiceCall) -> None:
        address = call.data[ATTR_ADDRESS]
        device = await _hub_for_address(hass, address).async_remove_device(address)
        registry = dr.async_get(hass)
        device_entry = registry.async_get_device(identifiers={(DOMAIN, device.id)})
        if device_entry is not None:
            registry.async_remove_device(device_entry.id)

    async def _async_fade(call: ServiceCall) -> None:
        address = call.data[ATTR_ADDRESS]
        hub = _hub_for_address(hass, address)
        device = hub.require_device(address)
        await hub.async_perform_action(
            device.id,
            ACTION_FADE,
            {"level": call.data[ATTR_LEVEL], "duration": call.data[ATTR_DURATION]},
        )

    async def _async_poll(call: ServiceCall) -> None:
        address = call.data[ATTR_ADDRESS]
        hub = _hub_for_address(hass, address)
        device = hub.require_device(address)
        await hub.async_perform_action(device.id, ACTION_POLL)

    hass.services.async_register(
        DOMAIN,
        SERVICE_SCAN,
        _async_scan,
        schema=SERVICE_ENTRY_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(DOMAIN, SERVICE_PAIR, _async_pair, schema=SERVICE_PAIR_SCHEMA)
    hass.services.async_register(
        DOMAIN, SERVICE_CANCEL_PAIRING, _async_cancel_pairing, schema=SERVICE_ENTRY_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_LINK_HEARTBEAT, _async_link_heartbeat, schema=SERVICE_LINK_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_LINK_LOW_BATTERY, _async_link_low_battery, schema=SERVICE_LINK_SCHEMA
    )
    hass.services.async_register(
        DOMAIN, SERVICE_REMOVE_DEVICE, _async_remove_device, schema=SERVICE_ADDRESS_SCHEMA
    )
    hass.services.async_register(DOMAIN, SERVICE_FADE, _async_fade, schema=SERVICE_FADE_SCHEMA)
    hass.services.async_register(DOMAIN, SERVICE_POLL, _async_poll, schema=SERVICE_ADDRESS_SCHEMA)
