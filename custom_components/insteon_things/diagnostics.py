"""Diagnostics support for INSTEON things."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
import enum
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_DEVICE
from homeassistant.core import HomeAssistant

from .const import DATA_COORDINATOR, DATA_HUB, DOMAIN
from .coordinator import InsteonDataUpdateCoordinator
from .hub import InsteonHub


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    data = hass.data.get(DOMAIN, {}).get(entry.entry_id)
    hub: InsteonHub | None = data.get(DATA_HUB) if data else None
    coordinator: InsteonDataUpdateCoordinator | None = (
        data.get(DATA_COORDINATOR) if data else None
    )
    devices = coordinator.data if coordinator is not None else None

    return {
        "entry_id": entry.entry_id,
        "device": entry.data.get(CONF_DEVICE),
        "options": _to_jsonable(entry.options),
        "connected": hub.is_ready if hub is not None else False,
        "pairing": hub.adapter.pairing if hub is not None else False,
        "modem": _to_jsonable(hub.modem_info) if hub is not None else None,
        "devices": {
            device_id: _to_jsonable(device.as_dict())
            for device_id, device in (devices or {}).items()
        },
    }


def _to_jsonable(value: Any) -> Any:
    """Normalize library objects to JSON-safe types."""
    if value is None:
        return None
    if is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: _to_jsonable(getattr(value, field.name))
            for field in fields(value)
        }
    if isinstance(value, Mapping):
        return {str(key): _to_jsonable(val) for key, val in value.items()}
    if isinstance(value, list | tuple):
        return [_to_jsonable(item) for item in value]
    if isinstance(value, set | frozenset):
        return sorted([_to_jsonable(item) for item in value], key=str)
    if isinstance(value, bytes | bytearray):
        return value.hex()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, str | int | float | bool):
        return value
    return str(value)
