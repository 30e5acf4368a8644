"""Integration for Shelly PV power metering devices."""

from __future__ import annotations

from datetime import datetime
import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, ServiceCall, callback
import homeassistant.helpers.config_validation as cv
from homeassistant.helpers.event import async_call_later
from homeassistant.helpers.typing import ConfigType

from .const import DOMAIN, INITIAL_POLL_DELAY, SERVICE_REFRESH
from .coordinator import ShellyPVCoordinator

_LOGGER = logging.getLogger(__name__)

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Register the services of the integration."""

    async def async_handle_refresh(call: ServiceCall) -> None:
        """Trigger a fleet poll on every loaded entry."""
        coordinators: dict[str, ShellyPVCoordinator] = hass.data.get(DOMAIN, {})
        for coordinator in coordinators.values():
            coordinator.async_trigger_poll()

    hass.services.async_register(DOMAIN, SERVICE_REFRESH, async_handle_refresh)
    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Shelly PV from a config entry."""

    coordinator = ShellyPVCoordinator(hass, entry)

    # Store coordinator for the refresh service to access
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = coordinator

    # Installing the configuration starts the first fleet poll
    coordinator.async_install_config({**entry.data, **entry.options})

    @callback
    def _async_deferred_poll(_now: datetime) -> None:
        _LOGGER.debug("Running deferred initial Shelly PV poll")
        coordinator.async_trigger_poll()

    entry.async_on_unload(
        async_call_later(hass, INITIAL_POLL_DELAY, _async_deferred_poll)
    )
    entry.async_on_unload(entry.add_update_listener(update_listener))

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    hass.data[DOMAIN].pop(entry.entry_id, None)
    if not hass.data[DOMAIN]:
        hass.data.pop(DOMAIN)

    return True


async def update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update by swapping in the new configuration."""
    coordinator: ShellyPVCoordinator = hass.data[DOMAIN][entry.entry_id]
    coordinator.async_install_config({**entry.data, **entry.options})
