"""Entity kinds: each one is an ``Entity`` built from its own descriptor."""

from mqtt2ha.components.binary_sensor import BINARY_SENSOR, BinarySensor
from mqtt2ha.components.button import BUTTON, Button
from mqtt2ha.components.climate import CLIMATE, Climate
from mqtt2ha.components.sensor import SENSOR, Sensor
from mqtt2ha.components.switch import SWITCH, Switch

__all__ = [
    "BINARY_SENSOR",
    "BUTTON",
    "CLIMATE",
    "SENSOR",
    "SWITCH",
    "BinarySensor",
    "Button",
    "Climate",
    "Sensor",
    "Switch",
]
