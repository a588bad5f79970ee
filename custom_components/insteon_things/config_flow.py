"""Config flow for the INSTEON things integration."""

from __future__ import annotations

import logging
from typing import Any

from insteon_lib import InsteonConnectionError, InsteonError, InsteonTimeoutError
import voluptuous as vol

from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.const import CONF_DEVICE
from homeassistant.core import callback
from homeassistant.helpers import config_validation as cv

from .const import (
    CONF_LINK_TIMEOUT,
    CONF_POLL_INTERVAL,
    DEFAULT_LINK_TIMEOUT,
    DEFAULT_POLL_INTERVAL_HOURS,
    DOMAIN,
    MAX_LINK_TIMEOUT,
)
from .hub import async_validate_modem

_LOGGER = logging.getLogger(__name__)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_DEVICE): cv.string,
    }
)


class InsteonConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for an INSTEON modem."""

    VERSION = 1
    MINOR_VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Ask for the modem device path or serial URL."""
        errors: dict[str, str] = {}
        if user_input is not None:
            port = user_input[CONF_DEVICE].strip()
            self._async_abort_entries_match({CONF_DEVICE: port})
            try:
                info = await async_validate_modem(port)
            except (InsteonConnectionError, InsteonTimeoutError) as err:
                _LOGGER.debug("Modem at %s did not answer: %s", port, err)
                errors["base"] = "cannot_connect"
            except InsteonError:
                _LOGGER.exception("Unexpected error talking to modem at %s", port)
                errors["base"] = "unknown"
            else:
                await self.async_set_unique_id(info.address)
                self._abort_if_unique_id_configured(updates={CONF_DEVICE: port})
                return self.async_create_entry(
                    title=f"INSTEON Modem {info.address}",
                    data={CONF_DEVICE: port},
                )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> InsteonOptionsFlow:
        """Return the options flow."""
        return InsteonOptionsFlow()


class InsteonOptionsFlow(OptionsFlow):
    """Adjust polling and linking timings."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Manage the options."""
        if user_input is not None:
            return self.async_create_entry(data=user_input)

        options = self.config_entry.options
        schema = vol.Schema(
            {
                vol.Required(
                    CONF_POLL_INTERVAL,
                    default=options.get(CONF_POLL_INTERVAL, DEFAULT_POLL_INTERVAL_HOURS),
                ): vol.All(vol.Coerce(int), vol.Range(min=1, max=24)),
                vol.Required(
                    CONF_LINK_TIMEOUT,
                    default=options.get(CONF_LINK_TIMEOUT, DEFAULT_LINK_TIMEOUT),
                ): vol.All(vol.Coerce(int), vol.Range(min=5, max=MAX_LINK_TIMEOUT)),
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema)
