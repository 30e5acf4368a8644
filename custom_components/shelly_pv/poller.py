"""Fetch the reading of a single device with the rate limit retry policy."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
import logging

from .api import (
    ShellyPVApiClient,
    ShellyPVApiError,
    ShellyPVConnectionError,
    ShellyPVRateLimitError,
)
from .const import MAX_RATE_LIMIT_RETRIES, RATE_LIMIT_RETRY_DELAY
from .models import DeviceConfig, DeviceReading
from .normalizer import normalize_status

_LOGGER = logging.getLogger(__name__)


class RetryDecision(StrEnum):
    """What to do after a failed attempt."""

    RETRY = "retry"
    DEGRADE = "degrade"
    PROPAGATE = "propagate"


class PollState(StrEnum):
    """State of the per device fetch."""

    ATTEMPT = "attempt"
    DONE = "done"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry rate limited requests, give up on everything the API reports."""

    max_retries: int = MAX_RATE_LIMIT_RETRIES
    retry_delay: float = RATE_LIMIT_RETRY_DELAY

    def decide(self, err: Exception, retry_count: int) -> RetryDecision:
        """Return the decision for err raised by attempt number retry_count."""
        if isinstance(err, ShellyPVRateLimitError):
            if retry_count < self.max_retries:
                return RetryDecision.RETRY
            return RetryDecision.DEGRADE
        if isinstance(err, (ShellyPVApiError, ShellyPVConnectionError)):
            return RetryDecision.DEGRADE
        return RetryDecision.PROPAGATE


async def async_fetch_device_reading(
    api: ShellyPVApiClient,
    device: DeviceConfig,
    policy: RetryPolicy | None = None,
) -> DeviceReading:
    """Fetch and normalize the status of one device.

    Rate limited requests are retried after a delay while the policy allows it.
    Every other failure the API reports results in a degraded reading.

    Raises:
        Exception: Only errors the retry policy does not know how to handle

    """
    policy = policy or RetryPolicy()
    retry_count = 0
    state = PollState.ATTEMPT
    reading = DeviceReading.degraded(device.name)

    while state is PollState.ATTEMPT:
        _LOGGER.debug("Fetching status for %s (ID: %s)", device.name, device.id)
        try:
            data = await api.async_get_device_status(device.id)
        except Exception as err:
            decision = policy.decide(err, retry_count)
            if decision is RetryDecision.PROPAGATE:
                raise
            if decision is RetryDecision.RETRY:
                retry_count += 1
                _LOGGER.warning(
                    "Rate limit hit for %s (retry %s/%s), waiting %s seconds",
                    device.name,
                    retry_count,
                    policy.max_retries,
                    policy.retry_delay,
                )
                await asyncio.sleep(policy.retry_delay)
                continue
            if isinstance(err, ShellyPVRateLimitError):
                _LOGGER.error("Rate limit hit for %s, no more retries", device.name)
            else:
                _LOGGER.error("Error fetching status for %s: %s", device.name, err)
            state = PollState.DONE
        else:
            if data:
                reading = normalize_status(data, device)
                _LOGGER.debug(
                    "Fetched %s: %s, status: %s",
                    device.name,
                    "No power data" if reading.power is None else f"{reading.power}W",
                    reading.status_class,
                )
            else:
                _LOGGER.warning("No device status data received for %s", device.name)
            state = PollState.DONE

    return reading
