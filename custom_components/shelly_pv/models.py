"""Data models for Shelly PV integration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from homeassistant.const import CONF_ID, CONF_NAME
from homeassistant.exceptions import HomeAssistantError
import homeassistant.helpers.config_validation as cv

from .const import (
    CONF_AUTH_KEY,
    CONF_CHANNEL,
    CONF_DEVICES,
    CONF_SERVER_URI,
    DEFAULT_CHANNEL,
    STATUS_CLASS_OFF,
    STATUS_CLASS_ON,
)

DEVICE_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_ID): cv.string,
        vol.Required(CONF_NAME): cv.string,
        vol.Optional(CONF_CHANNEL, default=DEFAULT_CHANNEL): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
    },
    extra=vol.REMOVE_EXTRA,
)

DEVICES_SCHEMA = vol.All(cv.ensure_list, vol.Length(min=1), [DEVICE_SCHEMA])


class ShellyPVConfigurationError(HomeAssistantError):
    """Exception to indicate a missing or malformed device configuration."""


@dataclass(frozen=True)
class DeviceConfig:
    """One configured device."""

    id: str
    name: str
    channel: int = DEFAULT_CHANNEL


@dataclass(frozen=True)
class PollSessionConfig:
    """Immutable snapshot of the configuration used by one fleet run."""

    server_uri: str
    auth_key: str
    devices: tuple[DeviceConfig, ...]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PollSessionConfig:
        """Build a configuration snapshot from config entry data.

        Raises:
            ShellyPVConfigurationError: If the device list is missing or malformed

        """
        raw_devices = data.get(CONF_DEVICES)
        if not isinstance(raw_devices, list) or not raw_devices:
            raise ShellyPVConfigurationError(
                "No valid device configuration found or 'devices' is not a list"
            )
        try:
            devices = DEVICES_SCHEMA(raw_devices)
        except vol.Invalid as err:
            raise ShellyPVConfigurationError(
                f"Invalid device configuration: {err}"
            ) from err

        return cls(
            server_uri=str(data.get(CONF_SERVER_URI, "")).rstrip("/"),
            auth_key=str(data.get(CONF_AUTH_KEY, "")),
            devices=tuple(
                DeviceConfig(
                    id=device[CONF_ID],
                    name=device[CONF_NAME],
                    channel=device[CONF_CHANNEL],
                )
                for device in devices
            ),
        )


@dataclass(frozen=True)
class DeviceReading:
    """Normalized on/off and power state of one device."""

    name: str
    is_on: bool
    power: float | None = None

    @property
    def status_class(self) -> str:
        """Return the status class derived from the on/off state."""
        return STATUS_CLASS_ON if self.is_on else STATUS_CLASS_OFF

    @classmethod
    def degraded(cls, name: str) -> DeviceReading:
        """Return the reading used when no device data is available."""
        return cls(name=name, is_on=False, power=None)

    def as_dict(self) -> dict[str, Any]:
        """Return the reading as a plain dictionary."""
        return {
            "name": self.name,
            "is_on": self.is_on,
            "power": self.power,
            "status_class": self.status_class,
        }


# Readings of one fleet run, in configured device order
FleetResult = list[DeviceReading]


# Device status variants, one per known payload shape


@dataclass(frozen=True)
class RelayStatus:
    """Relay based device (relays/meters arrays)."""

    ison: bool
    power: float | None


@dataclass(frozen=True)
class PowerMeterStatus:
    """Single power metering channel ("pm1:0")."""

    apower: float | None


@dataclass(frozen=True)
class SwitchStatus:
    """Generic switch channel ("switch:0")."""

    output: bool
    apower: float | None


@dataclass(frozen=True)
class LightStatus:
    """Light array device (lights/meters arrays)."""

    ison: bool
    power: float | None


@dataclass(frozen=True)
class EnergyMeterStatus:
    """Energy meter ("em:0")."""

    total_act_power: float | None


@dataclass(frozen=True)
class UnknownStatus:
    """Payload without any recognized key."""


type DeviceStatus = (
    RelayStatus
    | PowerMeterStatus
    | SwitchStatus
    | LightStatus
    | EnergyMeterStatus
    | UnknownStatus
)
