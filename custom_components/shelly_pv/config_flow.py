"""Config flow for Shelly PV integration."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

import voluptuous as vol

from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.const import CONF_ID
from homeassistant.core import callback
from homeassistant.helpers import selector
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .api import (
    ShellyPVApiClient,
    ShellyPVApiError,
    ShellyPVConnectionError,
    ShellyPVRateLimitError,
)
from .const import CONF_AUTH_KEY, CONF_DEVICES, CONF_SERVER_URI, DOMAIN
from .models import DEVICES_SCHEMA

_LOGGER = logging.getLogger(__name__)


def _data_schema(
    defaults: Mapping[str, Any], *, with_server_uri: bool = True
) -> vol.Schema:
    schema: dict[Any, Any] = {}
    if with_server_uri:
        schema[
            vol.Required(
                CONF_SERVER_URI, default=defaults.get(CONF_SERVER_URI, vol.UNDEFINED)
            )
        ] = str
    return vol.Schema(
        {
            **schema,
            vol.Required(
                CONF_AUTH_KEY, default=defaults.get(CONF_AUTH_KEY, vol.UNDEFINED)
            ): str,
            vol.Required(
                CONF_DEVICES, default=defaults.get(CONF_DEVICES, vol.UNDEFINED)
            ): selector.ObjectSelector(),
        }
    )


async def _async_validate_input(
    flow: ConfigFlow | OptionsFlow, server_uri: str, user_input: dict[str, Any]
) -> tuple[dict[str, Any], dict[str, str]]:
    """Validate the device list and query the first device.

    Returns:
        The cleaned input and the form errors

    """
    errors: dict[str, str] = {}
    try:
        devices = DEVICES_SCHEMA(user_input[CONF_DEVICES])
    except vol.Invalid:
        errors["base"] = "invalid_devices"
        return user_input, errors

    data = {
        CONF_AUTH_KEY: user_input[CONF_AUTH_KEY],
        CONF_DEVICES: devices,
    }
    api = ShellyPVApiClient(
        async_get_clientsession(flow.hass), server_uri, data[CONF_AUTH_KEY]
    )
    try:
        await api.async_validate_connection(devices[0][CONF_ID])
    except ShellyPVConnectionError:
        errors["base"] = "cannot_connect"
    except ShellyPVRateLimitError:
        errors["base"] = "rate_limited"
    except ShellyPVApiError:
        errors["base"] = "invalid_response"
    except Exception:  # pylint: disable=broad-except
        _LOGGER.exception("Unexpected exception")
        errors["base"] = "unknown"

    return data, errors


class ShellyPVConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Shelly PV."""

    VERSION = 1

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry) -> ShellyPVOptionsFlow:
        """Get the options flow for this handler."""
        return ShellyPVOptionsFlow()

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Handle the initial step."""
        errors: dict[str, str] = {}

        if user_input is not None:
            server_uri = user_input[CONF_SERVER_URI].rstrip("/")

            # Check if already configured
            await self.async_set_unique_id(server_uri)
            self._abort_if_unique_id_configured()

            data, errors = await _async_validate_input(self, server_uri, user_input)
            if not errors:
                return self.async_create_entry(
                    title=f"Shelly PV ({server_uri})",
                    data={CONF_SERVER_URI: server_uri, **data},
                )

        return self.async_show_form(
            step_id="user",
            data_schema=_data_schema(user_input or {}),
            errors=errors,
        )


class ShellyPVOptionsFlow(OptionsFlow):
    """Replace the credential and device list of an entry.

    The server URI is the unique id of the entry and stays fixed.
    """

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Manage the options."""
        errors: dict[str, str] = {}

        if user_input is not None:
            data, errors = await _async_validate_input(
                self, self.config_entry.data[CONF_SERVER_URI], user_input
            )
            if not errors:
                return self.async_create_entry(data=data)

        current = {**self.config_entry.data, **self.config_entry.options}
        return self.async_show_form(
            step_id="init",
            data_schema=_data_schema(user_input or current, with_server_uri=False),
            errors=errors,
        )
