"""Map raw Shelly device status payloads to uniform readings."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .const import KEY_EM, KEY_LIGHTS, KEY_METERS, KEY_PM1, KEY_RELAYS, KEY_SWITCH
from .models import (
    DeviceConfig,
    DeviceReading,
    DeviceStatus,
    EnergyMeterStatus,
    LightStatus,
    PowerMeterStatus,
    RelayStatus,
    SwitchStatus,
    UnknownStatus,
)


def _item(values: Any, index: int) -> Mapping[str, Any]:
    """Return values[index] if it is a mapping, an empty mapping otherwise."""
    if isinstance(values, list) and 0 <= index < len(values):
        value = values[index]
        if isinstance(value, Mapping):
            return value
    return {}


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


def _power(value: Any) -> float | None:
    """Return a power value in W, keeping absence distinct from zero."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def classify_status(data: Mapping[str, Any], channel: int = 0) -> DeviceStatus:
    """Decide which payload shape data has.

    Shapes are checked in a fixed order and the first present key wins:
    relays, pm1:0, switch:0, lights, em:0.
    """
    if data.get(KEY_RELAYS) is not None:
        return RelayStatus(
            ison=bool(_item(data[KEY_RELAYS], channel).get("ison", False)),
            power=_power(_item(data.get(KEY_METERS), channel).get("power")),
        )
    if data.get(KEY_PM1) is not None:
        return PowerMeterStatus(apower=_power(_section(data, KEY_PM1).get("apower")))
    if data.get(KEY_SWITCH) is not None:
        switch = _section(data, KEY_SWITCH)
        return SwitchStatus(
            output=bool(switch.get("output", False)),
            apower=_power(switch.get("apower")),
        )
    if data.get(KEY_LIGHTS) is not None:
        return LightStatus(
            ison=bool(_item(data[KEY_LIGHTS], 0).get("ison", False)),
            power=_power(_item(data.get(KEY_METERS), 0).get("power")),
        )
    if data.get(KEY_EM) is not None:
        return EnergyMeterStatus(
            total_act_power=_power(_section(data, KEY_EM).get("total_act_power"))
        )
    return UnknownStatus()


def normalize_status(
    data: Mapping[str, Any] | None, device: DeviceConfig
) -> DeviceReading:
    """Build the reading for device from its raw status payload."""
    if not data:
        return DeviceReading.degraded(device.name)

    match classify_status(data, device.channel):
        case RelayStatus(ison=is_on, power=power) | LightStatus(
            ison=is_on, power=power
        ):
            pass
        case SwitchStatus(output=is_on, apower=power):
            pass
        case PowerMeterStatus(apower=power) | EnergyMeterStatus(
            total_act_power=power
        ):
            # Presence of the channel means the device is delivering
            is_on = True
        case _:
            return DeviceReading.degraded(device.name)

    return DeviceReading(name=device.name, is_on=is_on, power=power)
