"""Home Assistant MQTT discoverable entity.

``Entity`` is the one entity type; what differs between a binary sensor, a
switch or a thermostat is described by an ``EntityDescriptor``: the state
and command channels the kind supports and optional per-channel transforms
applied to state values before they are serialized.
"""

from __future__ import annotations

import asyncio
import json
import random
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Self

import aiomqtt

from mqtt2ha.command_routing import CommandCallback, CommandRouter
from mqtt2ha.configuration import ComponentConfiguration
from mqtt2ha.const import MQTT2HA_HASS_BIRTH_MAX_DELAY, ORIGIN_STRUCT
from mqtt2ha.exceptions import ConfigurationError
from mqtt2ha.logging_abstraction import LoggerProtocol, get_logger
from mqtt2ha.settings import ComponentSettings, ResolvedConfig, resolve_config
from mqtt2ha.topics import (
    EntityIdentity,
    TopicPrefixes,
    TopicSet,
    assemble_discovery_document,
    base_topic,
    build_topic_set,
    derive_identifier,
)
from mqtt2ha.transport import BusConnection
from mqtt2ha.utils import await_if_needed, encode_state

logger = get_logger(__name__)

StateChangedHandler = Callable[[str, Any], Awaitable[None] | None]
StateTransform = Callable[[Any, ResolvedConfig], Any]


@dataclass(frozen=True)
class EntityDescriptor:
    """Capabilities of one component kind."""

    component: str
    state_channels: tuple[str, ...] = ()
    command_channels: tuple[str, ...] = ()
    state_transforms: Mapping[str, StateTransform] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def state_bearing(self) -> bool:
        return bool(self.state_channels)

    @property
    def command_bearing(self) -> bool:
        return bool(self.command_channels)


def _check_supported(requested: list[str], supported: tuple[str, ...], kind: str, component: str) -> None:
    unsupported = [name for name in requested if name not in supported]
    if unsupported:
        raise ConfigurationError(f"{component} does not support {kind} channels {unsupported}")


class Entity:
    """A discoverable entity: topics, discovery document, state and commands."""

    lp: str = "entity:"

    def __init__(
        self,
        settings: ComponentSettings,
        descriptor: EntityDescriptor,
        *,
        state_channels: Iterable[str] | None = None,
        command_channels: Iterable[str] | None = None,
        on_state_change: StateChangedHandler | None = None,
        on_command: CommandCallback | None = None,
        connection: BusConnection | None = None,
    ) -> None:
        """Create a new entity.

        Args:
            settings: MQTT and component settings
            descriptor: Channels and transforms of the component kind
            state_channels: Subset of the kind's state channels to expose (default: all)
            command_channels: Subset of the kind's command channels to expose (default: all)
            on_state_change: Called with (channel_name, value) after each state publish
            on_command: Called with (channel_name, payload) for each inbound command
            connection: Existing connection to share; by default the entity opens its
                own, with a last will on its availability topic

        Raises:
            ConfigurationError: identity, channels or device name are invalid

        """
        component = settings.component
        if component.component != descriptor.component:
            raise ConfigurationError(
                f"component {component.component!r} does not match entity kind {descriptor.component!r}"
            )

        self.settings: ComponentSettings = settings
        self.component: ComponentConfiguration = component
        self.descriptor: EntityDescriptor = descriptor
        self.config: ResolvedConfig = resolve_config(settings)
        self.logger: LoggerProtocol = settings.logger or logger

        state_names = list(descriptor.state_channels if state_channels is None else state_channels)
        command_names = list(descriptor.command_channels if command_channels is None else command_channels)
        _check_supported(state_names, descriptor.state_channels, "state", descriptor.component)
        _check_supported(command_names, descriptor.command_channels, "command", descriptor.component)

        identity = EntityIdentity.from_configuration(component)
        self.identifier: str = derive_identifier(identity)
        self.base_topic: str = base_topic(identity.component_kind, identity.device_name, self.identifier)
        self.topics: TopicSet = build_topic_set(
            state_names,
            command_names,
            self.base_topic,
            TopicPrefixes(self.config.discovery_prefix, self.config.state_prefix),
            state_bearing=descriptor.state_bearing,
            command_bearing=descriptor.command_bearing,
        )

        self.wrote_configuration: bool = False
        self.state_changed_handler: StateChangedHandler | None = on_state_change
        self._background: set[asyncio.Task[Any]] = set()
        self._birth_task: asyncio.Task[None] | None = None

        self._owns_connection = connection is None
        if connection is None:
            will = None
            if not self.config.manual_availability:
                will = aiomqtt.Will(
                    topic=self.topics.availability,
                    payload=self.config.payload_not_available,
                    retain=True,
                )
            self.logger.debug("%s Creating MQTT client for %s...", self.lp, self.identifier)
            connection = BusConnection(
                self.config,
                f"{self.config.client_name}-{self.identifier}",
                will=will,
                log=self.logger,
            )
        self.connection: BusConnection = connection
        self.connection.on_error(self._on_connection_error)

        self.command_router: CommandRouter | None = None
        if self.topics.command_channels:
            if on_command is None:
                raise ConfigurationError(f"{descriptor.component} has command channels but no command callback")
            self.command_router = CommandRouter(
                self.connection,
                self.topics,
                on_command,
                error_policy=self.config.command_error_policy,
                identifier=self.identifier,
                log=self.logger,
            )

        if self.config.rediscover_on_hass_birth:
            self.connection.on_connected(self._subscribe_hass_status)
            self.connection.on_message(self._handle_hass_status)

    def __repr__(self) -> str:
        return f"<{type(self).__name__}: {self.identifier}>"

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.stop()

    async def start(self) -> None:
        """Connect (or wait for a shared connection to be up).

        A shared connection may already have run its connected handlers before
        this entity registered, so the entity's subscriptions are sent here.
        """
        if self._owns_connection:
            await self.connection.start()
            return

        await self.connection.wait_connected()
        await self._subscribe_all()

    async def stop(self) -> None:
        if self._birth_task is not None and not self._birth_task.done():
            _ = self._birth_task.cancel()
        for task in list(self._background):
            if not task.done():
                _ = task.cancel()
        if self._owns_connection:
            await self.connection.stop()

    async def _subscribe_all(self) -> None:
        if self.command_router is not None:
            await self.command_router.subscribe_all()
        if self.config.rediscover_on_hass_birth:
            await self._subscribe_hass_status()

    def _on_connection_error(self, error: BaseException) -> None:
        self.logger.error(
            "%s MQTT client error for %s: %s",
            self.lp,
            self.identifier,
            error,
            extra={"entity": self.identifier, "topic": getattr(error, "topic", None)},
        )

    def get_config(self) -> dict[str, Any]:
        """The discovery document for this entity."""
        return assemble_discovery_document(self.component, self.topics, default_origin=ORIGIN_STRUCT)

    async def write_config(self) -> None:
        """Publish the discovery document (retained), then mark the entity online.

        The entity is only marked online here when availability is not
        managed manually.
        """
        self.logger.debug("%s Writing configuration for %s...", self.lp, self.identifier)
        await self.connection.publish(self.topics.config, json.dumps(self.get_config()), retain=True)
        self.wrote_configuration = True

        if not self.config.manual_availability:
            await self.set_availability(True)

    async def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        self.logger.debug("%s Setting attributes for %s...", self.lp, self.identifier)
        await self.connection.publish(self.topics.attributes, json.dumps(dict(attributes)), retain=True)

    async def set_availability(self, available: bool) -> None:
        self.logger.debug("%s Setting availability for %s to %s...", self.lp, self.identifier, available)
        payload = self.config.payload_available if available else self.config.payload_not_available
        await self.connection.publish(self.topics.availability, payload, retain=True)

    def _state_topic(self, channel_name: str) -> str | None:
        topic = self.topics.state_topic(channel_name)
        if topic is None:
            self.logger.debug(
                "%s Channel '%s' is not one of the state channels %s was created with, skipping",
                self.lp,
                channel_name,
                self.identifier,
            )
        return topic

    def _serialize_state(self, channel_name: str, value: Any) -> str:
        transform = self.descriptor.state_transforms.get(channel_name)
        if transform is not None:
            value = transform(value, self.config)
        return encode_state(value)

    async def set_state(self, channel_name: str, value: Any) -> None:
        """Publish a state value (retained) and then notify the state handler.

        Unknown channels are skipped without publishing.
        """
        topic = self._state_topic(channel_name)
        if topic is None:
            return

        self.logger.debug("%s Setting %s state for %s...", self.lp, channel_name, self.identifier)
        await self.connection.publish(topic, self._serialize_state(channel_name, value), retain=True)
        if self.state_changed_handler is not None:
            await await_if_needed(self.state_changed_handler(channel_name, value))

    def set_state_nowait(self, channel_name: str, value: Any) -> asyncio.Task[None] | None:
        """Issue a state publish without waiting for it, then notify the state handler.

        Returns the publish task, or None when the channel is unknown. Must be
        called from within a running event loop.
        """
        topic = self._state_topic(channel_name)
        if topic is None:
            return None

        self.logger.debug("%s Setting %s state for %s...", self.lp, channel_name, self.identifier)
        task = self.connection.publish_nowait(topic, self._serialize_state(channel_name, value), retain=True)
        if self.state_changed_handler is not None:
            result = self.state_changed_handler(channel_name, value)
            if asyncio.iscoroutine(result) or asyncio.isfuture(result):
                background = asyncio.ensure_future(result)
                self._background.add(background)
                background.add_done_callback(self._background.discard)
        return task

    async def _subscribe_hass_status(self) -> None:
        await self.connection.subscribe(self.config.hass_status_topic, qos=0)

    def _handle_hass_status(self, topic: str, payload: bytes) -> None:
        if topic != self.config.hass_status_topic:
            return
        status = payload.decode("utf-8", errors="replace").strip()
        if status.casefold() != self.config.hass_birth_payload.casefold():
            self.logger.info("%s Home Assistant status for %s: %s", self.lp, self.identifier, status)
            return
        if not self.wrote_configuration:
            return
        if self._birth_task is not None and not self._birth_task.done():
            return

        birth_delay = random.uniform(0, MQTT2HA_HASS_BIRTH_MAX_DELAY)
        self.logger.info(
            "%s Home Assistant sent its birth message, re-announcing %s in %.1f seconds...",
            self.lp,
            self.identifier,
            birth_delay,
        )
        self._birth_task = asyncio.get_running_loop().create_task(self._rediscover(birth_delay))

    async def _rediscover(self, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self.write_config()
        except Exception:
            self.logger.exception("%s Re-announcing %s failed", self.lp, self.identifier)
