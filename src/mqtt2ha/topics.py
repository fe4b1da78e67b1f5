"""Topic naming and discovery document assembly.

Every topic an entity uses is derived here from its identity and the two
topic prefixes, so the publishing side and the command side always agree:

    <discovery_prefix>/<kind>[/<device>]/<identifier>/config
    <state_prefix>/<kind>[/<device>]/<identifier>/attributes
    <state_prefix>/<kind>[/<device>]/<identifier>/availability
    <state_prefix>/<kind>[/<device>]/<identifier>/<channel without _topic>

Nothing in this module does I/O.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

from mqtt2ha.configuration import ComponentConfiguration
from mqtt2ha.const import TOPIC_SUFFIX
from mqtt2ha.exceptions import ConfigurationError
from mqtt2ha.utils import clean_string

__all__ = [
    "CONFIG_CHANNEL",
    "ATTRIBUTES_CHANNEL",
    "AVAILABILITY_CHANNEL",
    "EntityIdentity",
    "TopicPrefixes",
    "TopicSet",
    "assemble_discovery_document",
    "base_topic",
    "build_topic_set",
    "channel_segment",
    "derive_identifier",
    "sanitize",
]

CONFIG_CHANNEL = "config"
ATTRIBUTES_CHANNEL = "attributes"
AVAILABILITY_CHANNEL = "availability"

sanitize = clean_string


@dataclass(frozen=True)
class EntityIdentity:
    """The fields that decide where an entity lives in the topic tree."""

    component_kind: str
    unique_id: str | None = None
    object_id: str | None = None
    name: str | None = None
    device_name: str | None = None

    @classmethod
    def from_configuration(cls, config: ComponentConfiguration) -> EntityIdentity:
        return cls(
            component_kind=config.component,
            unique_id=config.unique_id,
            object_id=config.object_id,
            name=config.name,
            device_name=config.device.name if config.device else None,
        )


class TopicPrefixes(NamedTuple):
    discovery_prefix: str
    state_prefix: str


def derive_identifier(identity: EntityIdentity) -> str:
    """Return unique_id, else object_id, else name.

    The first one that is set wins, even if it is empty; an empty winner is
    rejected like a missing one.
    """
    for candidate in (identity.unique_id, identity.object_id, identity.name):
        if candidate is not None:
            if not candidate:
                break
            return candidate
    raise ConfigurationError("entity must have a unique_id, object_id, or name")


def base_topic(component_kind: str, device_name: str | None, identifier: str) -> str:
    """Shared namespace of one entity: ``<kind>[/<device>]/<identifier>``."""
    if device_name is None:
        return f"{component_kind}/{clean_string(identifier)}"
    if not device_name.strip():
        raise ConfigurationError(f"device name {device_name!r} is blank")
    return f"{component_kind}/{clean_string(device_name)}/{clean_string(identifier)}"


def channel_segment(channel_name: str) -> str:
    """Last topic segment for a channel: ``mode_state_topic`` -> ``mode_state``."""
    if channel_name.endswith(TOPIC_SUFFIX):
        return channel_name[: -len(TOPIC_SUFFIX)]
    return channel_name


@dataclass(frozen=True)
class TopicSet(Mapping[str, str]):
    """Logical channel name -> fully qualified topic, fixed at construction.

    Besides the state and command channels it always holds the ``config``,
    ``attributes`` and ``availability`` entries.
    """

    config: str
    attributes: str
    availability: str
    state_channels: tuple[tuple[str, str], ...] = ()
    command_channels: tuple[tuple[str, str], ...] = ()

    def _entries(self) -> Iterator[tuple[str, str]]:
        yield CONFIG_CHANNEL, self.config
        yield ATTRIBUTES_CHANNEL, self.attributes
        yield AVAILABILITY_CHANNEL, self.availability
        yield from self.state_channels
        yield from self.command_channels

    def __getitem__(self, channel_name: str) -> str:
        for name, topic in self._entries():
            if name == channel_name:
                return topic
        raise KeyError(channel_name)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._entries())

    def __len__(self) -> int:
        return 3 + len(self.state_channels) + len(self.command_channels)

    @property
    def state(self) -> dict[str, str]:
        return dict(self.state_channels)

    @property
    def command(self) -> dict[str, str]:
        return dict(self.command_channels)

    def state_topic(self, channel_name: str) -> str | None:
        for name, topic in self.state_channels:
            if name == channel_name:
                return topic
        return None

    def command_channel_for(self, topic: str) -> str | None:
        """Channel name whose command topic is exactly ``topic``, if any."""
        for name, command_topic in self.command_channels:
            if command_topic == topic:
                return name
        return None

    def exposed(self) -> dict[str, str]:
        """Channels announced to Home Assistant (state and command only)."""
        return {**self.state, **self.command}


def _unique(names: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(names))


def build_topic_set(
    state_channel_names: Iterable[str],
    command_channel_names: Iterable[str],
    base: str,
    prefixes: TopicPrefixes,
    *,
    state_bearing: bool = True,
    command_bearing: bool = False,
) -> TopicSet:
    """Resolve every channel of one entity to its topic.

    Raises ConfigurationError when a state-bearing entity has no state
    channels or a command-bearing entity has no command channels.
    """
    state_names = _unique(state_channel_names)
    command_names = _unique(command_channel_names)

    if state_bearing and not state_names:
        raise ConfigurationError("no state channels provided")
    if command_bearing and not command_names:
        raise ConfigurationError("no command channels provided")

    state_root = f"{prefixes.state_prefix}/{base}"
    return TopicSet(
        config=f"{prefixes.discovery_prefix}/{base}/config",
        attributes=f"{state_root}/attributes",
        availability=f"{state_root}/availability",
        state_channels=tuple((name, f"{state_root}/{channel_segment(name)}") for name in state_names),
        command_channels=tuple((name, f"{state_root}/{channel_segment(name)}") for name in command_names),
    )


def assemble_discovery_document(
    entity_config: ComponentConfiguration | Mapping[str, Any],
    topic_set: TopicSet,
    default_origin: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the retained discovery payload for one entity.

    Declared fields come first, then the extension map, then the resolved
    topics. ``availability`` always carries the availability topic, whether or
    not the entity declared an availability block.
    """
    if isinstance(entity_config, ComponentConfiguration):
        document: dict[str, Any] = {**entity_config.declared_fields(), **entity_config.extension_fields()}
    else:
        document = {key: value for key, value in entity_config.items() if value is not None}

    if default_origin is not None and "origin" not in document:
        document["origin"] = dict(default_origin)

    document["json_attributes_topic"] = topic_set.attributes
    declared_availability = document.get("availability")
    if declared_availability:
        document["availability"] = {**declared_availability, "topic": topic_set.availability}
    else:
        document["availability"] = {"topic": topic_set.availability}

    document.update(topic_set.exposed())
    return document
