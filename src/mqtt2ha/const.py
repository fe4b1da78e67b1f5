import os

from mqtt2ha import __version__

__all__ = [
    "DEFAULT_CLIENT_NAME",
    "DEFAULT_DISCOVERY_PREFIX",
    "DEFAULT_PAYLOAD_AVAILABLE",
    "DEFAULT_PAYLOAD_NOT_AVAILABLE",
    "DEFAULT_PAYLOAD_OFF",
    "DEFAULT_PAYLOAD_ON",
    "DEFAULT_STATE_PREFIX",
    "MQTT2HA_DEBUG",
    "MQTT2HA_HASS_BIRTH_MAX_DELAY",
    "MQTT2HA_HASS_BIRTH_MSG",
    "MQTT2HA_HASS_STATUS_TOPIC",
    "MQTT2HA_LOG_FORMAT",
    "MQTT2HA_LOG_HUMAN_OUTPUT",
    "MQTT2HA_LOG_JSON_FILE",
    "MQTT2HA_MQTT_CONN_DELAY",
    "MQTT2HA_MQTT_HOST",
    "MQTT2HA_MQTT_PASS",
    "MQTT2HA_MQTT_PORT",
    "MQTT2HA_MQTT_USER",
    "MQTT2HA_VERSION",
    "ORIGIN_STRUCT",
    "SUBSCRIBE_QOS",
    "TOPIC_SUFFIX",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")

MQTT2HA_VERSION: str = __version__

DEFAULT_DISCOVERY_PREFIX: str = os.environ.get("MQTT2HA_DISCOVERY_PREFIX", "homeassistant")
DEFAULT_STATE_PREFIX: str = os.environ.get("MQTT2HA_STATE_PREFIX", "mqtt2ha")
DEFAULT_CLIENT_NAME: str = os.environ.get("MQTT2HA_CLIENT_NAME", "mqtt2ha")
DEFAULT_PAYLOAD_AVAILABLE: str = "online"
DEFAULT_PAYLOAD_NOT_AVAILABLE: str = "offline"
DEFAULT_PAYLOAD_ON: str = "ON"
DEFAULT_PAYLOAD_OFF: str = "OFF"

# channel names end with this suffix in discovery documents, but not in topic paths
TOPIC_SUFFIX: str = "_topic"
# commands are subscribed at-least-once
SUBSCRIBE_QOS: int = 1

MQTT2HA_MQTT_HOST: str = os.environ.get("MQTT2HA_MQTT_HOST", "homeassistant.local")
_mqtt_port = os.environ.get("MQTT2HA_MQTT_PORT", "1883")
try:
    _mqtt_port_value: int = int(_mqtt_port) if _mqtt_port else 1883
except ValueError:
    _mqtt_port_value = 1883
MQTT2HA_MQTT_PORT: int = _mqtt_port_value
MQTT2HA_MQTT_USER: str | None = os.environ.get("MQTT2HA_MQTT_USER") or None
MQTT2HA_MQTT_PASS: str | None = os.environ.get("MQTT2HA_MQTT_PASS") or None
_conn_delay = os.environ.get("MQTT2HA_MQTT_CONN_DELAY", "10")
try:
    _conn_delay_value: float = float(_conn_delay) if _conn_delay else 10.0
except ValueError:
    _conn_delay_value = 10.0
if _conn_delay_value <= 0:
    _conn_delay_value = 10.0
MQTT2HA_MQTT_CONN_DELAY: float = _conn_delay_value

MQTT2HA_HASS_STATUS_TOPIC: str = os.environ.get("MQTT2HA_HASS_STATUS_TOPIC", "status")
MQTT2HA_HASS_BIRTH_MSG: str = os.environ.get("MQTT2HA_HASS_BIRTH_MSG", "online")
_birth_delay = os.environ.get("MQTT2HA_HASS_BIRTH_MAX_DELAY", "5")
try:
    _birth_delay_value: float = float(_birth_delay) if _birth_delay else 5.0
except ValueError:
    _birth_delay_value = 5.0
MQTT2HA_HASS_BIRTH_MAX_DELAY: float = _birth_delay_value

MQTT2HA_DEBUG: bool = os.environ.get("MQTT2HA_DEBUG", "0").casefold() in YES_ANSWER

# Logging Configuration
MQTT2HA_LOG_FORMAT: str = os.environ.get("MQTT2HA_LOG_FORMAT", "human")  # "json", "human", or "both"
MQTT2HA_LOG_JSON_FILE: str | None = os.environ.get("MQTT2HA_LOG_JSON_FILE") or None
MQTT2HA_LOG_HUMAN_OUTPUT: str = os.environ.get("MQTT2HA_LOG_HUMAN_OUTPUT", "stderr")  # "stdout", "stderr", or file path

ORIGIN_STRUCT = {
    "name": "mqtt2ha",
    "sw_version": MQTT2HA_VERSION,
}
