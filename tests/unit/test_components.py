"""
Unit tests for the concrete entity kinds.
"""

from unittest.mock import AsyncMock

import pytest

from mqtt2ha.command_routing import JsonPayload, TextPayload
from mqtt2ha.components import BinarySensor, Button, Climate, Sensor, Switch
from mqtt2ha.configuration import BinarySensorInfo, ButtonInfo, ClimateInfo, SensorInfo, SwitchInfo
from mqtt2ha.exceptions import ConfigurationError, TransportError


class TestBinarySensor:
    """Tests for BinarySensor on/off/toggle"""

    @pytest.mark.asyncio
    async def test_default_payloads(self, make_settings, mock_connection):
        sensor = BinarySensor(make_settings(), connection=mock_connection)
        state_topic = sensor.topics["state_topic"]

        await sensor.on()
        assert mock_connection.published()[state_topic] == ("ON", True)
        assert sensor.is_on is True

        await sensor.off()
        assert mock_connection.published()[state_topic] == ("OFF", True)
        assert sensor.is_on is False

    @pytest.mark.asyncio
    async def test_custom_payloads_and_toggle(self, make_settings, mock_connection):
        component = BinarySensorInfo(unique_id="door", payload_on="open", payload_off="closed")
        sensor = BinarySensor(make_settings(component), connection=mock_connection)
        state_topic = sensor.topics["state_topic"]

        await sensor.toggle()
        assert mock_connection.published()[state_topic] == ("open", True)

        await sensor.toggle()
        assert mock_connection.published()[state_topic] == ("closed", True)

    @pytest.mark.asyncio
    async def test_state_change_handler_gets_published_payload(self, make_settings, mock_connection):
        handler = AsyncMock()
        component = BinarySensorInfo(unique_id="door", payload_on="open", payload_off="closed")
        sensor = BinarySensor(make_settings(component), handler, connection=mock_connection)

        await sensor.on()

        handler.assert_awaited_once_with("state_topic", "open")
        assert mock_connection.published()[sensor.topics["state_topic"]] == ("open", True)

    @pytest.mark.asyncio
    async def test_failed_publish_keeps_previous_state(self, make_settings, mock_connection):
        sensor = BinarySensor(make_settings(), connection=mock_connection)
        mock_connection.publish.side_effect = TransportError("not connected", sensor.topics["state_topic"])

        with pytest.raises(TransportError):
            await sensor.on()

        assert sensor.is_on is False


class TestSensor:
    @pytest.mark.asyncio
    async def test_publishes_value(self, make_settings, mock_connection):
        sensor = Sensor(
            make_settings(SensorInfo(name="Temperature", unit_of_measurement="°C")),
            connection=mock_connection,
        )

        await sensor.set_state("state_topic", 21.5)

        assert mock_connection.published()["mqtt2ha/sensor/Temperature/state"] == ("21.5", True)
        assert sensor.get_config()["unit_of_measurement"] == "°C"


class TestButton:
    """Tests for command-only Button"""

    def test_has_no_state_channels(self, make_settings, mock_connection):
        button = Button(make_settings(ButtonInfo(name="Restart")), AsyncMock(), connection=mock_connection)

        document = button.get_config()

        assert button.topics.state == {}
        assert document["command_topic"] == "mqtt2ha/button/Restart/command"
        assert "state_topic" not in document

    @pytest.mark.asyncio
    async def test_press_reaches_callback(self, make_settings, mock_connection):
        callback = AsyncMock()
        _ = Button(make_settings(ButtonInfo(name="Restart")), callback, connection=mock_connection)

        await mock_connection.deliver("mqtt2ha/button/Restart/command", b"PRESS")

        callback.assert_awaited_once_with("command_topic", TextPayload(value="PRESS"))


class TestSwitch:
    """Tests for Switch command handling"""

    @pytest.fixture
    def switch_settings(self, make_settings):
        return make_settings(SwitchInfo(unique_id="pump"))

    @pytest.mark.asyncio
    async def test_on_command_updates_state_then_forwards(self, switch_settings, mock_connection):
        callback = AsyncMock()
        switch = Switch(switch_settings, callback, connection=mock_connection)

        await mock_connection.deliver("mqtt2ha/switch/pump/command", b"ON")

        assert switch.is_on is True
        assert mock_connection.published()["mqtt2ha/switch/pump/state"] == ("ON", True)
        callback.assert_awaited_once_with("command_topic", TextPayload(value="ON"))

    @pytest.mark.asyncio
    async def test_custom_off_payload(self, make_settings, mock_connection):
        settings = make_settings(SwitchInfo(unique_id="pump", payload_on="1", payload_off="0"))
        switch = Switch(settings, connection=mock_connection)
        await switch.on()

        # bare 0 decodes as a JSON number and is matched on its raw text
        await mock_connection.deliver("mqtt2ha/switch/pump/command", b"0")
        assert switch.is_on is False

        await mock_connection.deliver("mqtt2ha/switch/pump/command", b'"1"')
        assert switch.is_on is True

        await switch.off()
        assert mock_connection.published()["mqtt2ha/switch/pump/state"] == ("0", True)

    @pytest.mark.asyncio
    async def test_unrelated_payload_only_forwarded(self, switch_settings, mock_connection):
        callback = AsyncMock()
        switch = Switch(switch_settings, callback, connection=mock_connection)

        await mock_connection.deliver("mqtt2ha/switch/pump/command", b"42")

        assert switch.is_on is False
        mock_connection.publish.assert_not_awaited()
        callback.assert_awaited_once_with("command_topic", JsonPayload(value=42, raw="42"))

    @pytest.mark.asyncio
    async def test_failed_publish_keeps_previous_state(self, switch_settings, mock_connection):
        callback = AsyncMock()
        switch = Switch(switch_settings, callback, connection=mock_connection)
        await switch.on()
        mock_connection.publish.side_effect = TransportError("connection lost", "mqtt2ha/switch/pump/state")

        with pytest.raises(TransportError):
            await switch.off()

        assert switch.is_on is True


class TestClimate:
    """Tests for Climate channel subsets and convenience properties"""

    @pytest.fixture
    def climate_settings(self, make_settings):
        return make_settings(ClimateInfo(unique_id="thermostat", modes=["off", "heat", "cool"]))

    def test_all_channels_by_default(self, climate_settings, mock_connection):
        climate = Climate(climate_settings, AsyncMock(), connection=mock_connection)

        assert len(climate.topics.state_channels) == 12
        assert len(climate.topics.command_channels) == 10

    def test_channel_subset(self, climate_settings, mock_connection):
        climate = Climate(
            climate_settings,
            AsyncMock(),
            state_channels=["current_temperature_topic", "temperature_state_topic"],
            command_channels=["temperature_command_topic"],
            connection=mock_connection,
        )

        document = climate.get_config()

        assert document["temperature_command_topic"] == "mqtt2ha/climate/thermostat/temperature_command"
        assert "mode_state_topic" not in document
        assert climate.command_router.subscriptions.keys() == {"mqtt2ha/climate/thermostat/temperature_command"}

    def test_unsupported_channel_raises(self, climate_settings, mock_connection):
        with pytest.raises(ConfigurationError):
            _ = Climate(climate_settings, AsyncMock(), state_channels=["state_topic"], connection=mock_connection)

    @pytest.mark.asyncio
    async def test_properties_publish_without_waiting(self, climate_settings, mock_connection):
        climate = Climate(climate_settings, AsyncMock(), connection=mock_connection)

        climate.current_temperature = 20.5
        climate.target_temperature = 22
        climate.current_mode = "heat"
        climate.current_action = "heating"

        calls = {call.args[0]: call.args[1] for call in mock_connection.publish_nowait.call_args_list}
        assert calls == {
            "mqtt2ha/climate/thermostat/current_temperature": "20.5",
            "mqtt2ha/climate/thermostat/temperature_state": "22",
            "mqtt2ha/climate/thermostat/mode_state": "heat",
            "mqtt2ha/climate/thermostat/action": "heating",
        }
        assert climate.current_temperature == 20.5
        assert climate.current_mode == "heat"

    @pytest.mark.asyncio
    async def test_property_for_unselected_channel_is_skipped(self, climate_settings, mock_connection):
        climate = Climate(
            climate_settings,
            AsyncMock(),
            state_channels=["current_temperature_topic"],
            command_channels=["mode_command_topic"],
            connection=mock_connection,
        )

        climate.current_action = "idle"

        mock_connection.publish_nowait.assert_not_called()
        assert climate.current_action == "idle"

    @pytest.mark.asyncio
    async def test_mode_command_reaches_callback(self, climate_settings, mock_connection):
        callback = AsyncMock()
        _ = Climate(climate_settings, callback, connection=mock_connection)

        await mock_connection.deliver("mqtt2ha/climate/thermostat/temperature_command", b"72.5")

        callback.assert_awaited_once_with("temperature_command_topic", JsonPayload(value=72.5, raw="72.5"))
