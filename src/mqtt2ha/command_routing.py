"""MQTT command routing for one entity.

Subscribes to the entity's command topics whenever the connection reports
it is connected, matches inbound messages against those topics, decodes the
payload and hands ``(channel_name, payload)`` to the entity's command
callback. Messages on other topics are ignored: the connection may be
shared with other entities.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any

from mqtt2ha.const import SUBSCRIBE_QOS
from mqtt2ha.correlation import command_context
from mqtt2ha.exceptions import TransportError
from mqtt2ha.logging_abstraction import get_logger
from mqtt2ha.utils import await_if_needed

if TYPE_CHECKING:
    from mqtt2ha.logging_abstraction import LoggerProtocol
    from mqtt2ha.topics import TopicSet
    from mqtt2ha.transport import BusConnection

logger = get_logger(__name__)


class CommandErrorPolicy(StrEnum):
    """What the router does when the command callback raises."""

    # re-raise into the connection's message loop, which logs it and reports
    # it to its error handlers
    PROPAGATE = "propagate"
    # log with traceback here and keep going
    LOG = "log"


class SubscriptionState(StrEnum):
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    SUBSCRIBED = "subscribed"


@dataclass(frozen=True)
class JsonPayload:
    """Command payload that parsed as JSON."""

    value: Any
    raw: str


@dataclass(frozen=True)
class TextPayload:
    """Command payload that is not JSON, passed through as text."""

    value: str

    @property
    def raw(self) -> str:
        return self.value


CommandPayload = JsonPayload | TextPayload
CommandCallback = Callable[[str, CommandPayload], Awaitable[None] | None]


def decode_command_payload(payload: bytes | str) -> CommandPayload:
    """Decode an inbound command: JSON when it parses, raw text otherwise.

    "72.5" -> JsonPayload(72.5), "ON" -> TextPayload("ON").
    """
    text = payload if isinstance(payload, str) else payload.decode("utf-8", errors="replace")
    try:
        return JsonPayload(value=json.loads(text), raw=text)
    except JSONDecodeError:
        return TextPayload(value=text)


class CommandRouter:
    """Dispatches command messages for one entity to its command callback."""

    lp: str = "router:"

    def __init__(
        self,
        connection: BusConnection,
        topic_set: TopicSet,
        command_callback: CommandCallback,
        *,
        error_policy: CommandErrorPolicy = CommandErrorPolicy.PROPAGATE,
        identifier: str = "",
        log: LoggerProtocol | None = None,
    ) -> None:
        """Initialize the command router and hook it onto the connection.

        Args:
            connection: Connection shared with the entity's publishing side
            topic_set: The entity's resolved topics; only command channels are used
            command_callback: Called with (channel_name, payload), sync or async
            error_policy: Behavior when command_callback raises
            identifier: Entity identifier, for log lines
            log: Logger to use instead of the module logger

        """
        self.connection = connection
        self.topic_set = topic_set
        self.command_callback = command_callback
        self.error_policy = error_policy
        self.identifier = identifier
        self.logger: LoggerProtocol = log or logger
        self.subscriptions: dict[str, SubscriptionState] = dict.fromkeys(
            topic_set.command.values(), SubscriptionState.UNSUBSCRIBED
        )

        connection.on_connected(self.subscribe_all)
        connection.on_message(self.handle_message)

    @property
    def is_subscribed(self) -> bool:
        return all(state is SubscriptionState.SUBSCRIBED for state in self.subscriptions.values())

    async def subscribe_all(self) -> None:
        """Subscribe to every command topic; runs on each (re)connection."""
        lp = f"{self.lp}subscribe:"
        for channel_name, topic in self.topic_set.command_channels:
            self.logger.debug(
                "%s Subscribing to %s command topic %s for %s...",
                lp,
                channel_name,
                topic,
                self.identifier,
            )
            self.subscriptions[topic] = SubscriptionState.SUBSCRIBING
            try:
                await self.connection.subscribe(topic, qos=SUBSCRIBE_QOS)
            except TransportError:
                self.subscriptions[topic] = SubscriptionState.UNSUBSCRIBED
                raise
            self.subscriptions[topic] = SubscriptionState.SUBSCRIBED

    async def handle_message(self, topic: str, payload: bytes) -> bool:
        """Route one inbound message. Returns True if it was dispatched."""
        channel_name = self.topic_set.command_channel_for(topic)
        if channel_name is None:
            return False

        lp = f"{self.lp}rcv:"
        decoded = decode_command_payload(payload)
        with command_context(self.identifier, channel_name, topic):
            self.logger.debug(
                "%s Received %s command for %s on topic %s: %s",
                lp,
                channel_name,
                self.identifier,
                topic,
                decoded.raw,
                extra={"payload_type": "json" if isinstance(decoded, JsonPayload) else "text"},
            )
            try:
                await await_if_needed(self.command_callback(channel_name, decoded))
            except Exception:
                if self.error_policy is CommandErrorPolicy.PROPAGATE:
                    raise
                self.logger.exception(
                    "%s Command callback failed for %s on channel %s",
                    lp,
                    self.identifier,
                    channel_name,
                    extra={"policy": str(self.error_policy), "payload": decoded.raw},
                )
        return True
