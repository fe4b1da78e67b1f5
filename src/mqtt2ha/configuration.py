"""Discovery configuration models for Home Assistant MQTT entities.

These are the fields an entity declares about itself. They end up in the
discovery document next to the resolved topics. Keys not modelled here are
kept as a pass-through extension map (``model_extra``) and merged after the
typed fields.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class AvailabilityConfiguration(BaseModel):
    """How the entity reports its online/offline status."""

    model_config = ConfigDict(frozen=True)

    payload_available: str | None = None
    payload_not_available: str | None = None
    # compared against payload_available/payload_not_available by HA
    value_template: str | None = None


class DeviceConfiguration(BaseModel):
    """Device registry entry that ties several entities together."""

    model_config = ConfigDict(frozen=True)

    identifiers: str | list[str] | None = None
    name: str | None = None
    model: str | None = None
    manufacturer: str | None = None
    sw_version: str | None = None
    hw_version: str | None = None
    suggested_area: str | None = None
    via_device: str | None = None
    configuration_url: str | None = None


class OriginConfiguration(BaseModel):
    """The application that published the discovery document."""

    model_config = ConfigDict(frozen=True)

    name: str
    sw_version: str | None = None
    support_url: str | None = None


class ComponentConfiguration(BaseModel):
    """Configuration shared by every component kind.

    ``component`` is the Home Assistant platform (binary_sensor, switch, ...).
    At least one of unique_id, object_id or name must be set; the first one
    present becomes the entity identifier used in topic paths.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    component: str
    unique_id: str | None = None
    object_id: str | None = None
    name: str | None = None
    device: DeviceConfiguration | None = None
    origin: OriginConfiguration | None = None
    device_class: str | None = None
    entity_category: Literal["config", "diagnostic", "system"] | None = None
    icon: str | None = None
    enabled_by_default: bool | None = None
    expire_after: int | None = None
    force_update: bool | None = None
    availability: AvailabilityConfiguration | None = None
    json_attributes_template: str | None = None
    value_template: str | None = None
    qos: int | None = None

    def declared_fields(self) -> dict[str, Any]:
        """Typed fields that were set, without the extension map."""
        extension_keys = set(self.model_extra or {})
        return {
            key: value
            for key, value in self.model_dump(exclude_none=True).items()
            if key not in extension_keys
        }

    def extension_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class BinarySensorInfo(ComponentConfiguration):
    component: Literal["binary_sensor"] = "binary_sensor"
    payload_on: str | None = None
    payload_off: str | None = None


class ButtonInfo(ComponentConfiguration):
    component: Literal["button"] = "button"
    payload_press: str | None = None
    retain: bool | None = None


class SensorInfo(ComponentConfiguration):
    component: Literal["sensor"] = "sensor"
    unit_of_measurement: str | None = None
    state_class: str | None = None
    last_reset_value_template: str | None = None
    suggested_display_precision: int | None = None


class SwitchInfo(ComponentConfiguration):
    component: Literal["switch"] = "switch"
    payload_on: str | None = None
    payload_off: str | None = None
    optimistic: bool | None = None


class ClimateInfo(ComponentConfiguration):
    component: Literal["climate"] = "climate"
    action_template: str | None = None
    current_humidity_template: str | None = None
    current_temperature_template: str | None = None
    fan_mode_command_template: str | None = None
    fan_mode_state_template: str | None = None
    fan_modes: list[str] | None = None
    initial: float | None = None
    max_humidity: float | None = None
    max_temp: float | None = None
    min_humidity: float | None = None
    min_temp: float | None = None
    mode_command_template: str | None = None
    mode_state_template: str | None = None
    modes: list[str] | None = None
    optimistic: bool | None = None
    payload_off: str | None = None
    payload_on: str | None = None
    power_command_template: str | None = None
    precision: float | None = None
    preset_mode_command_template: str | None = None
    preset_mode_value_template: str | None = None
    preset_modes: list[str] | None = None
    retain: bool | None = None
    swing_horizontal_mode_command_template: str | None = None
    swing_horizontal_mode_state_template: str | None = None
    swing_horizontal_modes: list[str] | None = None
    swing_mode_command_template: str | None = None
    swing_mode_state_template: str | None = None
    swing_modes: list[str] | None = None
    target_humidity_command_template: str | None = None
    target_humidity_state_template: str | None = None
    temperature_command_template: str | None = None
    temperature_high_command_template: str | None = None
    temperature_high_state_template: str | None = None
    temperature_low_command_template: str | None = None
    temperature_low_state_template: str | None = None
    temperature_state_template: str | None = None
    temperature_unit: str | None = None
    temp_step: float | None = None
