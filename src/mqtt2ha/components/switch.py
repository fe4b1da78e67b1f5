"""Switch: an on/off state that Home Assistant can also command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mqtt2ha.command_routing import CommandPayload, JsonPayload, TextPayload
from mqtt2ha.components.binary_sensor import on_off_payload
from mqtt2ha.entity import Entity, EntityDescriptor, StateChangedHandler
from mqtt2ha.utils import await_if_needed

if TYPE_CHECKING:
    from mqtt2ha.command_routing import CommandCallback
    from mqtt2ha.settings import ComponentSettings
    from mqtt2ha.transport import BusConnection

SWITCH = EntityDescriptor(
    component="switch",
    state_channels=("state_topic",),
    command_channels=("command_topic",),
    state_transforms={"state_topic": on_off_payload},
)


class Switch(Entity):
    """Represents a switch in Home Assistant.

    A command matching ``payload_on``/``payload_off`` is applied to the
    switch's own state first, then every command is forwarded to
    ``on_command``.
    """

    lp: str = "switch:"

    def __init__(
        self,
        settings: ComponentSettings,
        on_command: CommandCallback | None = None,
        *,
        on_state_change: StateChangedHandler | None = None,
        connection: BusConnection | None = None,
    ) -> None:
        self._user_command_callback: CommandCallback | None = on_command
        self._is_on: bool = False
        super().__init__(
            settings,
            SWITCH,
            on_state_change=on_state_change,
            on_command=self._handle_command,
            connection=connection,
        )

    @property
    def payload_on(self) -> str:
        return self.config.payload_on

    @property
    def payload_off(self) -> str:
        return self.config.payload_off

    @property
    def is_on(self) -> bool:
        return self._is_on

    async def on(self) -> None:
        await self.set_state("state_topic", self.config.payload_on)
        self._is_on = True

    async def off(self) -> None:
        await self.set_state("state_topic", self.config.payload_off)
        self._is_on = False

    async def _handle_command(self, channel_name: str, payload: CommandPayload) -> None:
        match payload:
            case JsonPayload(value=str(command)) | TextPayload(value=command):
                pass
            case JsonPayload(raw=command):
                pass

        if command == self.payload_on:
            await self.on()
        elif command == self.payload_off:
            await self.off()

        if self._user_command_callback is not None:
            await await_if_needed(self._user_command_callback(channel_name, payload))
