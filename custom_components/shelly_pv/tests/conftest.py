"""Global fixtures for Shelly PV integration."""

from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

pytest_plugins = "pytest_homeassistant_custom_component"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> None:  # noqa: D103
    return


@pytest.fixture
def mock_api() -> MagicMock:
    """Return an API client whose status requests are mocked."""
    api = MagicMock()
    api.async_get_device_status = AsyncMock()
    return api


@pytest.fixture
def mock_client(mock_api: MagicMock) -> Generator[MagicMock]:
    """Make the coordinator use mock_api instead of a real client."""
    with (
        patch(
            "custom_components.shelly_pv.coordinator.ShellyPVApiClient",
            return_value=mock_api,
        ) as client_cls,
        patch("custom_components.shelly_pv.coordinator.async_get_clientsession"),
    ):
        yield client_cls
