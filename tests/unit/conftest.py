"""
Shared fixtures for unit tests.

The fake connection records the handlers entities register on it, so tests
can drive (re)connections and inbound messages by calling them directly.
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from mqtt2ha.configuration import BinarySensorInfo, ComponentConfiguration
from mqtt2ha.settings import ComponentSettings, MqttSettings
from mqtt2ha.utils import await_if_needed


@pytest.fixture
def mqtt_settings():
    """Broker settings with explicit prefixes so topics are predictable."""
    return MqttSettings(
        host="broker.local",
        discovery_prefix="homeassistant",
        state_prefix="mqtt2ha",
        client_name="test",
    )


@pytest.fixture
def make_settings(mqtt_settings) -> Callable[..., ComponentSettings]:
    """Factory for ComponentSettings around a component configuration."""

    def _make(component: ComponentConfiguration | None = None, **kwargs: Any) -> ComponentSettings:
        if component is None:
            component = BinarySensorInfo(unique_id="my_sensor")
        return ComponentSettings(mqtt=mqtt_settings, component=component, **kwargs)

    return _make


@pytest.fixture
def mock_connection():
    """
    Mock BusConnection.

    publish/subscribe are AsyncMocks; registered handlers are kept in
    connected_handlers / message_handlers / error_handlers, and
    fire_connected() / deliver() run them like the real receive loop.
    """
    connection = MagicMock()
    connection.publish = AsyncMock()
    connection.subscribe = AsyncMock()
    connection.wait_connected = AsyncMock()
    connection.start = AsyncMock()
    connection.stop = AsyncMock()
    connection.publish_nowait = MagicMock(return_value=MagicMock())
    connection.is_connected = True

    connection.connected_handlers = []
    connection.message_handlers = []
    connection.error_handlers = []
    connection.on_connected = MagicMock(side_effect=connection.connected_handlers.append)
    connection.on_message = MagicMock(side_effect=connection.message_handlers.append)
    connection.on_error = MagicMock(side_effect=connection.error_handlers.append)

    async def fire_connected():
        for handler in connection.connected_handlers:
            await await_if_needed(handler())

    async def deliver(topic: str, payload: bytes):
        for handler in connection.message_handlers:
            await await_if_needed(handler(topic, payload))

    def published() -> dict[str, tuple[Any, bool]]:
        """topic -> (payload, retain) for every publish call, last write wins."""
        result: dict[str, tuple[Any, bool]] = {}
        for call in connection.publish.call_args_list:
            topic, payload = call.args[:2]
            result[topic] = (payload, call.kwargs.get("retain", False))
        return result

    connection.fire_connected = fire_connected
    connection.deliver = deliver
    connection.published = published
    return connection
