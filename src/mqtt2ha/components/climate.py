"""Climate: a thermostat with a caller-chosen subset of HA's climate channels."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from mqtt2ha.entity import Entity, EntityDescriptor, StateChangedHandler

if TYPE_CHECKING:
    from mqtt2ha.command_routing import CommandCallback
    from mqtt2ha.settings import ComponentSettings
    from mqtt2ha.transport import BusConnection

CLIMATE_STATE_CHANNELS: tuple[str, ...] = (
    "action_topic",
    "current_humidity_topic",
    "current_temperature_topic",
    "fan_mode_state_topic",
    "mode_state_topic",
    "preset_mode_state_topic",
    "swing_horizontal_mode_state_topic",
    "swing_mode_state_topic",
    "target_humidity_state_topic",
    "temperature_high_state_topic",
    "temperature_low_state_topic",
    "temperature_state_topic",
)

CLIMATE_COMMAND_CHANNELS: tuple[str, ...] = (
    "fan_mode_command_topic",
    "mode_command_topic",
    "power_command_topic",
    "preset_mode_command_topic",
    "swing_horizontal_mode_command_topic",
    "swing_mode_command_topic",
    "target_humidity_command_topic",
    "temperature_command_topic",
    "temperature_high_command_topic",
    "temperature_low_command_topic",
)

CLIMATE = EntityDescriptor(
    component="climate",
    state_channels=CLIMATE_STATE_CHANNELS,
    command_channels=CLIMATE_COMMAND_CHANNELS,
)


class Climate(Entity):
    """Represents a thermostat in Home Assistant.

    Only the channels passed in ``state_channels``/``command_channels`` get
    topics and appear in the discovery document; by default all of them do.
    The convenience properties publish without waiting and therefore need a
    running event loop.
    """

    lp: str = "climate:"

    def __init__(
        self,
        settings: ComponentSettings,
        on_command: CommandCallback,
        *,
        state_channels: Iterable[str] | None = None,
        command_channels: Iterable[str] | None = None,
        on_state_change: StateChangedHandler | None = None,
        connection: BusConnection | None = None,
    ) -> None:
        super().__init__(
            settings,
            CLIMATE,
            state_channels=state_channels,
            command_channels=command_channels,
            on_state_change=on_state_change,
            on_command=on_command,
            connection=connection,
        )
        self._current_temperature: float | None = None
        self._target_temperature: float | None = None
        self._current_mode: str | None = None
        self._current_action: str | None = None

    @property
    def current_temperature(self) -> float | None:
        return self._current_temperature

    @current_temperature.setter
    def current_temperature(self, value: float) -> None:
        self._current_temperature = value
        _ = self.set_state_nowait("current_temperature_topic", value)

    @property
    def target_temperature(self) -> float | None:
        return self._target_temperature

    @target_temperature.setter
    def target_temperature(self, value: float) -> None:
        self._target_temperature = value
        _ = self.set_state_nowait("temperature_state_topic", value)

    @property
    def current_mode(self) -> str | None:
        """HVAC mode, one of the entity's ``modes`` (off, heat, cool, ...)."""
        return self._current_mode

    @current_mode.setter
    def current_mode(self, value: str) -> None:
        self._current_mode = value
        _ = self.set_state_nowait("mode_state_topic", value)

    @property
    def current_action(self) -> str | None:
        """HVAC action (off, heating, cooling, drying, idle, fan)."""
        return self._current_action

    @current_action.setter
    def current_action(self, value: str) -> None:
        self._current_action = value
        _ = self.set_state_nowait("action_topic", value)

