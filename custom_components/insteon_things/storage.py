"""Link record persistence backed by the Home Assistant storage helper."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import logging
from typing import Any

from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store

from .const import STORAGE_KEY, STORAGE_VERSION

_LOGGER = logging.getLogger(__name__)


class InsteonLinkStore:
    """Key/value link store persisted to ``.storage`` per config entry."""

    def __init__(self, hass: HomeAssistant, entry_id: str) -> None:
        self._store: Store[dict[str, dict[str, Any]]] = Store(
            hass, STORAGE_VERSION, f"{STORAGE_KEY}.{entry_id}"
        )
        self._records: dict[str, dict[str, Any]] | None = None
        self._lock = asyncio.Lock()

    async def _async_records(self) -> dict[str, dict[str, Any]]:
        if self._records is None:
            data = await self._store.async_load()
            self._records = dict(data) if isinstance(data, Mapping) else {}
            _LOGGER.debug("Loaded %s link records", len(self._records))
        return self._records

    async def async_get(self, key: str) -> Mapping[str, Any] | None:
        async with self._lock:
            records = await self._async_records()
            record = records.get(key)
            return dict(record) if record is not None else None

    async def async_set(self, key: str, record: Mapping[str, Any]) -> None:
        async with self._lock:
            records = await self._async_records()
            records[key] = dict(record)
            await self._store.async_save(records)

    async def async_delete(self, key: str) -> None:
        async with self._lock:
            records = await self._async_records()
            if records.pop(key, None) is None:
                return
            await self._store.async_save(records)

    async def async_keys(self) -> list[str]:
        async with self._lock:
            return list(await self._async_records())

    async def async_remove(self) -> None:
        """Delete the storage file when the config entry goes away."""
        async with self._lock:
            self._records = None
            await self._store.async_remove()
