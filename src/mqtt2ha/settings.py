"""Connection and component settings, and their one-time resolution.

``MqttSettings`` and ``ComponentSettings`` are what callers write; most
fields are optional. ``resolve_config`` applies every default exactly once
and returns a frozen ``ResolvedConfig`` that entities consult afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict

from mqtt2ha.command_routing import CommandErrorPolicy
from mqtt2ha.configuration import ComponentConfiguration
from mqtt2ha.const import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_DISCOVERY_PREFIX,
    DEFAULT_PAYLOAD_AVAILABLE,
    DEFAULT_PAYLOAD_NOT_AVAILABLE,
    DEFAULT_PAYLOAD_OFF,
    DEFAULT_PAYLOAD_ON,
    DEFAULT_STATE_PREFIX,
    MQTT2HA_HASS_BIRTH_MSG,
    MQTT2HA_HASS_STATUS_TOPIC,
    MQTT2HA_MQTT_CONN_DELAY,
    MQTT2HA_MQTT_HOST,
    MQTT2HA_MQTT_PASS,
    MQTT2HA_MQTT_PORT,
    MQTT2HA_MQTT_USER,
)

MQTT_PORT = 1883
MQTTS_PORT = 8883


class MqttSettings(BaseModel):
    """MQTT broker connection and topic prefix settings."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int | None = None
    username: str | None = None
    password: str | None = None
    client_name: str | None = None
    use_tls: bool = False
    tls_key: str | None = None
    tls_certfile: str | None = None
    tls_ca_cert: str | None = None
    discovery_prefix: str | None = None
    state_prefix: str | None = None
    # seconds between reconnection attempts
    reconnect_delay: float | None = None

    @classmethod
    def from_env(cls, **overrides: Any) -> MqttSettings:
        """Build settings from the MQTT2HA_* environment variables."""
        values: dict[str, Any] = {
            "host": MQTT2HA_MQTT_HOST,
            "port": MQTT2HA_MQTT_PORT,
            "username": MQTT2HA_MQTT_USER,
            "password": MQTT2HA_MQTT_PASS,
        }
        values.update(overrides)
        return cls(**values)


class ComponentSettings(BaseModel):
    """Everything needed to build one entity."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    mqtt: MqttSettings
    component: ComponentConfiguration
    # publish availability yourself instead of relying on the last will
    manual_availability: bool = False
    command_error_policy: CommandErrorPolicy = CommandErrorPolicy.PROPAGATE
    rediscover_on_hass_birth: bool = True
    logger: Any = None


@dataclass(frozen=True)
class ResolvedConfig:
    """Settings with every default applied."""

    host: str
    port: int
    username: str | None
    password: str | None
    client_name: str
    use_tls: bool
    tls_key: str | None
    tls_certfile: str | None
    tls_ca_cert: str | None
    discovery_prefix: str
    state_prefix: str
    reconnect_delay: float
    payload_available: str
    payload_not_available: str
    payload_on: str
    payload_off: str
    manual_availability: bool
    command_error_policy: CommandErrorPolicy
    rediscover_on_hass_birth: bool
    hass_status_topic: str
    hass_birth_payload: str


def resolve_config(settings: ComponentSettings) -> ResolvedConfig:
    """Apply defaults to ``settings`` once, at entity construction."""
    mqtt = settings.mqtt
    component = settings.component
    availability = component.availability
    discovery_prefix = mqtt.discovery_prefix or DEFAULT_DISCOVERY_PREFIX
    reconnect_delay = mqtt.reconnect_delay if mqtt.reconnect_delay is not None else MQTT2HA_MQTT_CONN_DELAY
    if reconnect_delay <= 0:
        # a zero delay turns the reconnect loop into a busy loop
        reconnect_delay = MQTT2HA_MQTT_CONN_DELAY

    return ResolvedConfig(
        host=mqtt.host,
        port=mqtt.port or (MQTTS_PORT if mqtt.use_tls else MQTT_PORT),
        username=mqtt.username,
        password=mqtt.password,
        client_name=mqtt.client_name or DEFAULT_CLIENT_NAME,
        use_tls=mqtt.use_tls,
        tls_key=mqtt.tls_key,
        tls_certfile=mqtt.tls_certfile,
        tls_ca_cert=mqtt.tls_ca_cert,
        discovery_prefix=discovery_prefix,
        state_prefix=mqtt.state_prefix or DEFAULT_STATE_PREFIX,
        reconnect_delay=reconnect_delay,
        payload_available=_or_default(
            availability.payload_available if availability else None,
            DEFAULT_PAYLOAD_AVAILABLE,
        ),
        payload_not_available=_or_default(
            availability.payload_not_available if availability else None,
            DEFAULT_PAYLOAD_NOT_AVAILABLE,
        ),
        payload_on=getattr(component, "payload_on", None) or DEFAULT_PAYLOAD_ON,
        payload_off=getattr(component, "payload_off", None) or DEFAULT_PAYLOAD_OFF,
        manual_availability=settings.manual_availability,
        command_error_policy=settings.command_error_policy,
        rediscover_on_hass_birth=settings.rediscover_on_hass_birth,
        hass_status_topic=f"{discovery_prefix}/{MQTT2HA_HASS_STATUS_TOPIC}",
        hass_birth_payload=MQTT2HA_HASS_BIRTH_MSG,
    )


def _or_default(value: str | None, default: str) -> str:
    # an explicit empty payload is kept, only a missing one falls back
    return default if value is None else value
