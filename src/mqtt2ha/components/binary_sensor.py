"""Binary sensor: a read-only on/off state."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mqtt2ha.entity import Entity, EntityDescriptor, StateChangedHandler

if TYPE_CHECKING:
    from mqtt2ha.settings import ComponentSettings, ResolvedConfig
    from mqtt2ha.transport import BusConnection


def on_off_payload(value: Any, config: ResolvedConfig) -> Any:
    """Booleans become the entity's payload_on/payload_off, anything else passes through."""
    if not isinstance(value, bool):
        return value
    return config.payload_on if value else config.payload_off


BINARY_SENSOR = EntityDescriptor(
    component="binary_sensor",
    state_channels=("state_topic",),
    state_transforms={"state_topic": on_off_payload},
)


class BinarySensor(Entity):
    """Represents a binary sensor in Home Assistant.

    ``on()``/``off()`` publish ``payload_on``/``payload_off`` and the state
    handler receives that same payload. ``is_on`` only changes once the
    publish went through.
    """

    lp: str = "binary_sensor:"

    def __init__(
        self,
        settings: ComponentSettings,
        on_state_change: StateChangedHandler | None = None,
        *,
        connection: BusConnection | None = None,
    ) -> None:
        super().__init__(settings, BINARY_SENSOR, on_state_change=on_state_change, connection=connection)
        self._is_on: bool = False

    @property
    def is_on(self) -> bool:
        return self._is_on

    async def on(self) -> None:
        await self.set_state("state_topic", self.config.payload_on)
        self._is_on = True

    async def off(self) -> None:
        await self.set_state("state_topic", self.config.payload_off)
        self._is_on = False

    async def toggle(self) -> None:
        if self._is_on:
            await self.off()
        else:
            await self.on()
