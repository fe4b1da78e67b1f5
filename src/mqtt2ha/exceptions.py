"""Exception hierarchy for mqtt2ha.

Configuration problems are raised synchronously while an entity is being
constructed. Transport problems are raised from the publish/subscribe call
that hit them. Unknown channel names and non-JSON command payloads are not
errors and never raise.
"""

from __future__ import annotations


class Mqtt2HAError(Exception):
    """Base exception for all mqtt2ha errors."""


class ConfigurationError(Mqtt2HAError):
    """Entity settings cannot produce a valid topic layout.

    Raised when:
    - None of unique_id, object_id or name is set
    - A state-bearing entity gets no state channels, or a command-bearing
      entity gets no command channels
    - A channel name is not supported by the entity kind
    - The device name is present but blank

    Attributes:
        reason: Specific failure reason

    """

    def __init__(self, reason: str) -> None:
        self.reason: str = reason
        super().__init__(f"Invalid entity configuration: {reason}")


class TransportError(Mqtt2HAError):
    """A publish or subscribe was rejected by the MQTT transport.

    Attributes:
        reason: Specific failure reason
        topic: Topic of the rejected operation, if any

    """

    def __init__(self, reason: str, topic: str | None = None) -> None:
        self.reason: str = reason
        self.topic: str | None = topic
        where = f" (topic: {topic})" if topic else ""
        super().__init__(f"MQTT transport error: {reason}{where}")
