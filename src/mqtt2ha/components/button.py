"""Button: command only, no state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mqtt2ha.entity import Entity, EntityDescriptor

if TYPE_CHECKING:
    from mqtt2ha.command_routing import CommandCallback
    from mqtt2ha.settings import ComponentSettings
    from mqtt2ha.transport import BusConnection

BUTTON = EntityDescriptor(component="button", command_channels=("command_topic",))


class Button(Entity):
    """Represents a button in Home Assistant.

    Every press arrives as ("command_topic", payload) on ``on_command``;
    the payload is ``payload_press`` (HA default: "PRESS").
    """

    lp: str = "button:"

    def __init__(
        self,
        settings: ComponentSettings,
        on_command: CommandCallback,
        *,
        connection: BusConnection | None = None,
    ) -> None:
        super().__init__(settings, BUTTON, on_command=on_command, connection=connection)
