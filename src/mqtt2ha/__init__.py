"""mqtt2ha: expose virtual entities to Home Assistant through MQTT discovery."""

__version__ = "0.3.0"

from mqtt2ha.command_routing import (  # noqa: E402
    CommandErrorPolicy,
    CommandPayload,
    CommandRouter,
    JsonPayload,
    SubscriptionState,
    TextPayload,
    decode_command_payload,
)
from mqtt2ha.components import BinarySensor, Button, Climate, Sensor, Switch  # noqa: E402
from mqtt2ha.configuration import (  # noqa: E402
    AvailabilityConfiguration,
    BinarySensorInfo,
    ButtonInfo,
    ClimateInfo,
    ComponentConfiguration,
    DeviceConfiguration,
    OriginConfiguration,
    SensorInfo,
    SwitchInfo,
)
from mqtt2ha.entity import Entity, EntityDescriptor  # noqa: E402
from mqtt2ha.exceptions import ConfigurationError, Mqtt2HAError, TransportError  # noqa: E402
from mqtt2ha.settings import ComponentSettings, MqttSettings, ResolvedConfig, resolve_config  # noqa: E402
from mqtt2ha.topics import (  # noqa: E402
    TopicSet,
    assemble_discovery_document,
    base_topic,
    build_topic_set,
    derive_identifier,
    sanitize,
)
from mqtt2ha.transport import BusConnection, connect  # noqa: E402

__all__ = [
    "AvailabilityConfiguration",
    "BinarySensor",
    "BinarySensorInfo",
    "BusConnection",
    "Button",
    "ButtonInfo",
    "Climate",
    "ClimateInfo",
    "CommandErrorPolicy",
    "CommandPayload",
    "CommandRouter",
    "ComponentConfiguration",
    "ComponentSettings",
    "ConfigurationError",
    "DeviceConfiguration",
    "Entity",
    "EntityDescriptor",
    "JsonPayload",
    "Mqtt2HAError",
    "MqttSettings",
    "OriginConfiguration",
    "ResolvedConfig",
    "Sensor",
    "SensorInfo",
    "SubscriptionState",
    "Switch",
    "SwitchInfo",
    "TextPayload",
    "TopicSet",
    "TransportError",
    "__version__",
    "assemble_discovery_document",
    "base_topic",
    "build_topic_set",
    "connect",
    "decode_command_payload",
    "derive_identifier",
    "resolve_config",
    "sanitize",
]
