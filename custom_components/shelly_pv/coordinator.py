"""Fleet poll coordinator for Shelly PV devices."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import logging
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed

from .api import ShellyPVApiClient
from .const import DOMAIN, EVENT_STATUS_UPDATE, PACING_INTERVAL
from .models import (
    FleetResult,
    PollSessionConfig,
    ShellyPVConfigurationError,
)
from .poller import RetryPolicy, async_fetch_device_reading

_LOGGER = logging.getLogger(__name__)


class ShellyPVCoordinator(DataUpdateCoordinator[FleetResult]):
    """Sequentially polls every configured device and publishes the readings.

    At most one fleet run is active at a time; triggers arriving while a run
    is in progress are dropped. A coordinator refresh runs the same guarded
    fleet poll.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        *,
        pacing_interval: float = PACING_INTERVAL,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(
            hass,
            _LOGGER,
            config_entry=config_entry,
            name=DOMAIN,
            update_interval=None,
        )
        self.pacing_interval = pacing_interval
        self.retry_policy = retry_policy or RetryPolicy()
        self._session_config: PollSessionConfig | None = None
        self._config_error: str | None = "No configuration received"
        self._is_polling = False
        self._poll_task: asyncio.Task[FleetResult | None] | None = None

    @property
    def is_polling(self) -> bool:
        """Return True while a fleet run is in progress."""
        return self._is_polling

    @property
    def session_config(self) -> PollSessionConfig | None:
        """Return the currently installed configuration."""
        return self._session_config

    @callback
    def async_install_config(self, data: Mapping[str, Any]) -> bool:
        """Replace the configuration and start a fleet run if it has devices.

        Returns:
            True if a fleet run was started

        """
        try:
            session_config = PollSessionConfig.from_mapping(data)
        except ShellyPVConfigurationError as err:
            self._session_config = None
            self._config_error = str(err)
            _LOGGER.error("Configuration received but not usable: %s", err)
            return False

        self._session_config = session_config
        self._config_error = None
        _LOGGER.info("Configuration received, fetching Shelly PV status")
        return self.async_trigger_poll()

    @callback
    def async_trigger_poll(self) -> bool:
        """Start a fleet run in the background unless one is running or pending.

        Returns:
            True if a fleet run was started

        """
        if self._is_polling or (
            self._poll_task is not None and not self._poll_task.done()
        ):
            _LOGGER.warning("Fetch already in progress, skipping")
            return False
        self._poll_task = self.config_entry.async_create_background_task(
            self.hass, self.async_run_poll(), f"{DOMAIN} fleet poll"
        )
        return True

    async def async_run_poll(self) -> FleetResult | None:
        """Poll every configured device in order.

        Returns:
            The readings in configured order, or None if the run was dropped,
            had no usable configuration or failed unexpectedly

        """
        if self._is_polling:
            _LOGGER.warning("Fetch already in progress, skipping")
            return None

        self._is_polling = True
        try:
            session_config = self._session_config
            if session_config is None or not session_config.devices:
                _LOGGER.error(
                    "No valid device configuration found: %s",
                    self._config_error or "device list is empty",
                )
                return None

            results = await self._async_poll_fleet(session_config)
        except Exception:
            _LOGGER.exception("Unexpected error while fetching Shelly PV status")
            return None
        finally:
            self._is_polling = False

        _LOGGER.info("Completed fetching all %s devices, sending update", len(results))
        self._async_publish(results)
        return results

    async def _async_poll_fleet(self, session_config: PollSessionConfig) -> FleetResult:
        """Fetch the devices of one configuration snapshot one after the other."""
        api = ShellyPVApiClient(
            async_get_clientsession(self.hass),
            session_config.server_uri,
            session_config.auth_key,
        )
        devices = session_config.devices
        results: FleetResult = []

        _LOGGER.info("Starting sequential fetch for %s devices", len(devices))
        for index, device in enumerate(devices):
            results.append(
                await async_fetch_device_reading(api, device, self.retry_policy)
            )
            if index < len(devices) - 1:
                _LOGGER.debug(
                    "Waiting %s seconds before next device", self.pacing_interval
                )
                await asyncio.sleep(self.pacing_interval)

        return results

    async def _async_update_data(self) -> FleetResult:
        """Poll the fleet for a coordinator refresh.

        Raises:
            UpdateFailed: If a run is in progress or no device is configured

        """
        if self._is_polling:
            raise UpdateFailed("Fetch already in progress")
        session_config = self._session_config
        if session_config is None or not session_config.devices:
            raise UpdateFailed(
                "No valid device configuration found: "
                f"{self._config_error or 'device list is empty'}"
            )

        self._is_polling = True
        try:
            results = await self._async_poll_fleet(session_config)
        finally:
            self._is_polling = False

        self._async_fire_status_update(results)
        return results

    @callback
    def _async_publish(self, results: FleetResult) -> None:
        """Hand the finished readings to listeners and the event bus."""
        self.async_set_updated_data(results)
        self._async_fire_status_update(results)

    @callback
    def _async_fire_status_update(self, results: FleetResult) -> None:
        self.hass.bus.async_fire(
            EVENT_STATUS_UPDATE,
            {
                "entry_id": self.config_entry.entry_id,
                "devices": [reading.as_dict() for reading in results],
            },
        )
