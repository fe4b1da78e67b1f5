"""
Unit tests for command payload decoding and the command router.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mqtt2ha.command_routing import (
    CommandErrorPolicy,
    CommandRouter,
    JsonPayload,
    SubscriptionState,
    TextPayload,
    decode_command_payload,
)
from mqtt2ha.correlation import get_command_context, get_correlation_id
from mqtt2ha.exceptions import TransportError
from mqtt2ha.topics import TopicPrefixes, build_topic_set

PREFIXES = TopicPrefixes(discovery_prefix="homeassistant", state_prefix="mqtt2ha")
TEMPERATURE_TOPIC = "mqtt2ha/climate/thermostat/temperature_command"
MODE_TOPIC = "mqtt2ha/climate/thermostat/mode_command"


@pytest.fixture
def climate_topics():
    return build_topic_set(
        ["temperature_state_topic"],
        ["temperature_command_topic", "mode_command_topic"],
        "climate/thermostat",
        PREFIXES,
        command_bearing=True,
    )


class TestDecodeCommandPayload:
    """Tests for JSON-or-text payload decoding"""

    def test_number_is_json(self):
        payload = decode_command_payload(b"72.5")

        assert payload == JsonPayload(value=72.5, raw="72.5")

    def test_object_is_json(self):
        payload = decode_command_payload(b'{"brightness": 50}')

        assert isinstance(payload, JsonPayload)
        assert payload.value == {"brightness": 50}

    def test_bare_word_is_text(self):
        payload = decode_command_payload(b"ON")

        assert payload == TextPayload(value="ON")
        assert payload.raw == "ON"

    def test_empty_payload_is_empty_text(self):
        assert decode_command_payload(b"") == TextPayload(value="")

    def test_accepts_str(self):
        assert decode_command_payload("true") == JsonPayload(value=True, raw="true")

    def test_invalid_utf8_is_replaced(self):
        payload = decode_command_payload(b"\xffON")

        assert isinstance(payload, TextPayload)
        assert payload.value.endswith("ON")

    def test_payloads_pattern_match(self):
        def describe(payload):
            match payload:
                case JsonPayload(value=float() | int() as number):
                    return f"number {number}"
                case TextPayload(value=text):
                    return f"text {text}"
            return "other"

        assert describe(decode_command_payload(b"21")) == "number 21"
        assert describe(decode_command_payload(b"heat")) == "text heat"


class TestCommandRouterSubscriptions:
    """Tests for subscribing to command topics on (re)connection"""

    def test_registers_on_connection(self, mock_connection, climate_topics):
        router = CommandRouter(mock_connection, climate_topics, AsyncMock())

        assert router.subscribe_all in mock_connection.connected_handlers
        assert router.handle_message in mock_connection.message_handlers
        assert router.subscriptions == {
            TEMPERATURE_TOPIC: SubscriptionState.UNSUBSCRIBED,
            MODE_TOPIC: SubscriptionState.UNSUBSCRIBED,
        }
        assert router.is_subscribed is False

    @pytest.mark.asyncio
    async def test_subscribes_every_command_topic_with_qos_1(self, mock_connection, climate_topics):
        router = CommandRouter(mock_connection, climate_topics, AsyncMock())

        await mock_connection.fire_connected()

        subscribed = {call.args[0]: call.kwargs["qos"] for call in mock_connection.subscribe.call_args_list}
        assert subscribed == {TEMPERATURE_TOPIC: 1, MODE_TOPIC: 1}
        assert router.is_subscribed is True

    @pytest.mark.asyncio
    async def test_resubscribes_after_reconnect(self, mock_connection, climate_topics):
        _ = CommandRouter(mock_connection, climate_topics, AsyncMock())

        await mock_connection.fire_connected()
        await mock_connection.fire_connected()

        assert mock_connection.subscribe.await_count == 4

    @pytest.mark.asyncio
    async def test_failed_subscribe_resets_state(self, mock_connection, climate_topics):
        mock_connection.subscribe = AsyncMock(side_effect=TransportError("not connected", TEMPERATURE_TOPIC))
        router = CommandRouter(mock_connection, climate_topics, AsyncMock())

        with pytest.raises(TransportError):
            await router.subscribe_all()

        assert router.subscriptions[TEMPERATURE_TOPIC] is SubscriptionState.UNSUBSCRIBED
        assert router.is_subscribed is False


class TestCommandRouterDispatch:
    """Tests for routing inbound messages to the command callback"""

    @pytest.mark.asyncio
    async def test_unmatched_topic_is_ignored(self, mock_connection, climate_topics):
        callback = AsyncMock()
        router = CommandRouter(mock_connection, climate_topics, callback)

        handled = await router.handle_message("mqtt2ha/climate/other/mode_command", b"heat")

        assert handled is False
        callback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_json_number_reaches_callback_as_number(self, mock_connection, climate_topics):
        callback = AsyncMock()
        _ = CommandRouter(mock_connection, climate_topics, callback)

        await mock_connection.deliver(TEMPERATURE_TOPIC, b"72.5")

        callback.assert_awaited_once()
        channel_name, payload = callback.await_args.args
        assert channel_name == "temperature_command_topic"
        assert isinstance(payload, JsonPayload)
        assert payload.value == 72.5

    @pytest.mark.asyncio
    async def test_text_reaches_callback_as_text(self, mock_connection, climate_topics):
        callback = AsyncMock()
        router = CommandRouter(mock_connection, climate_topics, callback)

        handled = await router.handle_message(MODE_TOPIC, b"heat")

        assert handled is True
        callback.assert_awaited_once_with("mode_command_topic", TextPayload(value="heat"))

    @pytest.mark.asyncio
    async def test_sync_callback_supported(self, mock_connection, climate_topics):
        callback = MagicMock(return_value=None)
        router = CommandRouter(mock_connection, climate_topics, callback)

        _ = await router.handle_message(MODE_TOPIC, b"off")

        callback.assert_called_once_with("mode_command_topic", TextPayload(value="off"))

    @pytest.mark.asyncio
    async def test_callback_runs_inside_correlation_scope(self, mock_connection, climate_topics):
        seen: list[str | None] = []
        router = CommandRouter(mock_connection, climate_topics, lambda *_: seen.append(get_correlation_id()))

        _ = await router.handle_message(MODE_TOPIC, b"off")

        assert seen[0] is not None
        assert get_correlation_id() is None

    @pytest.mark.asyncio
    async def test_callback_sees_command_context(self, mock_connection, climate_topics):
        seen: list[dict[str, str]] = []
        router = CommandRouter(
            mock_connection,
            climate_topics,
            lambda *_: seen.append(dict(get_command_context())),
            identifier="thermostat",
        )

        _ = await router.handle_message(MODE_TOPIC, b"off")

        assert seen == [{"entity": "thermostat", "channel": "mode_command_topic", "topic": MODE_TOPIC}]
        assert get_command_context() == {}

    @pytest.mark.asyncio
    async def test_receive_log_carries_payload_type(self, mock_connection, climate_topics):
        log = MagicMock()
        router = CommandRouter(mock_connection, climate_topics, AsyncMock(), identifier="thermostat", log=log)

        _ = await router.handle_message(TEMPERATURE_TOPIC, b"72.5")
        _ = await router.handle_message(MODE_TOPIC, b"heat")

        payload_types = [call.kwargs["extra"]["payload_type"] for call in log.debug.call_args_list]
        assert payload_types == ["json", "text"]

    @pytest.mark.asyncio
    async def test_propagate_policy_reraises(self, mock_connection, climate_topics):
        callback = AsyncMock(side_effect=ValueError("bad mode"))
        router = CommandRouter(mock_connection, climate_topics, callback)

        with pytest.raises(ValueError, match="bad mode"):
            _ = await router.handle_message(MODE_TOPIC, b"bogus")

    @pytest.mark.asyncio
    async def test_log_policy_logs_and_continues(self, mock_connection, climate_topics):
        callback = AsyncMock(side_effect=ValueError("bad mode"))
        log = MagicMock()
        router = CommandRouter(
            mock_connection,
            climate_topics,
            callback,
            error_policy=CommandErrorPolicy.LOG,
            identifier="thermostat",
            log=log,
        )

        handled = await router.handle_message(MODE_TOPIC, b"bogus")

        assert handled is True
        log.exception.assert_called_once()
        assert "thermostat" in log.exception.call_args.args
        assert log.exception.call_args.kwargs["extra"] == {"policy": "log", "payload": "bogus"}
