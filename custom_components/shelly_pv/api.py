"""API client for the Shelly cloud gateway."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from aiohttp import ClientTimeout
from aiohttp.client_exceptions import ClientError, ClientResponseError

from homeassistant.exceptions import HomeAssistantError

from .const import HTTP_TOO_MANY_REQUESTS, REQUEST_TIMEOUT

_LOGGER = logging.getLogger(__name__)

# API endpoints
ENDPOINT_DEVICE_STATUS = "/device/status"


class ShellyPVApiError(HomeAssistantError):
    """Exception to indicate an API error occurred."""

    def __init__(self, message: str = "", status: int | None = None) -> None:
        """Initialize the error with the HTTP status, if any."""
        super().__init__(message)
        self.status = status


class ShellyPVRateLimitError(ShellyPVApiError):
    """Exception to indicate the gateway rejected a request as too many requests."""


class ShellyPVConnectionError(HomeAssistantError):
    """Exception to indicate a connection error occurred."""


class ShellyPVApiClient:
    """API client for the Shelly cloud gateway."""

    def __init__(
        self, session: aiohttp.ClientSession, server_uri: str, auth_key: str
    ) -> None:
        """Initialize the API client.

        Args:
            session: aiohttp session used for all requests
            server_uri: Base URI of the gateway, e.g. https://shelly-1-eu.shelly.cloud
            auth_key: Static authorization key of the cloud account

        """
        self._session = session
        self.base_url = server_uri.rstrip("/")
        self._auth_key = auth_key

    async def async_validate_connection(self, device_id: str) -> bool:
        """Test if the gateway answers a status request for device_id.

        Returns:
            True if connection is successful

        Raises:
            ShellyPVConnectionError: If connection fails
            ShellyPVApiError: If the gateway returns an error

        """
        await self.async_get_device_status(device_id)
        return True

    async def async_get_device_status(self, device_id: str) -> dict[str, Any] | None:
        """Get the current status of one device.

        Returns:
            The raw device status payload, or None if the response carries none

        Raises:
            ShellyPVRateLimitError: If the gateway answers with HTTP 429
            ShellyPVApiError: If the gateway returns another error
            ShellyPVConnectionError: If connection fails or times out

        """
        payload = {"id": device_id, "auth_key": self._auth_key}

        try:
            response = await self._session.post(
                f"{self.base_url}{ENDPOINT_DEVICE_STATUS}",
                data=payload,
                timeout=ClientTimeout(total=REQUEST_TIMEOUT),
            )
            if response.status == HTTP_TOO_MANY_REQUESTS:
                raise ShellyPVRateLimitError(
                    "Too Many Requests", status=HTTP_TOO_MANY_REQUESTS
                )
            response.raise_for_status()
            data = await response.json()
        except ClientResponseError as err:
            raise ShellyPVApiError(
                f"Gateway returned an error: {err.status} {err.message}",
                status=err.status,
            ) from err
        except ClientError as err:
            raise ShellyPVConnectionError(
                f"Failed to connect to gateway: {err}"
            ) from err
        except TimeoutError as err:
            raise ShellyPVConnectionError(
                f"Timeout after {REQUEST_TIMEOUT} seconds"
            ) from err
        except ValueError as err:
            raise ShellyPVApiError(f"Invalid response from gateway: {err}") from err

        return _extract_device_status(data)


def _extract_device_status(data: Any) -> dict[str, Any] | None:
    """Return data.device_status of a gateway response body."""
    if not isinstance(data, dict):
        return None
    inner = data.get("data")
    if not isinstance(inner, dict):
        return None
    status = inner.get("device_status")
    return status if isinstance(status, dict) and status else None
