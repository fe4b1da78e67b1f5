"""Sensor: a read-only value."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mqtt2ha.entity import Entity, EntityDescriptor, StateChangedHandler

if TYPE_CHECKING:
    from mqtt2ha.settings import ComponentSettings
    from mqtt2ha.transport import BusConnection

SENSOR = EntityDescriptor(component="sensor", state_channels=("state_topic",))


class Sensor(Entity):
    lp: str = "sensor:"

    def __init__(
        self,
        settings: ComponentSettings,
        on_state_change: StateChangedHandler | None = None,
        *,
        connection: BusConnection | None = None,
    ) -> None:
        super().__init__(settings, SENSOR, on_state_change=on_state_change, connection=connection)
