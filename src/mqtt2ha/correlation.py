"""
Correlation tracking for inbound command handling.

Every command the router dispatches runs inside a ``command_context``: a
fresh correlation id plus the entity, channel and topic the command arrived
on. The log formatters read both, so every line logged while the command is
handled (router, entity, user callback, state publish) carries them without
callers passing ``extra=`` themselves.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from types import MappingProxyType

__all__ = [
    "command_context",
    "correlation_context",
    "get_command_context",
    "get_correlation_id",
]

_EMPTY: Mapping[str, str] = MappingProxyType({})

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "mqtt2ha_correlation_id",
    default=None,
)
_command: contextvars.ContextVar[Mapping[str, str]] = contextvars.ContextVar(
    "mqtt2ha_command",
    default=_EMPTY,
)


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def get_command_context() -> Mapping[str, str]:
    """Entity/channel/topic of the command being handled, empty outside one."""
    return _command.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Generator[str]:
    """Scope a correlation id (a new uuid4 hex when none is given)."""
    correlation_id = correlation_id or uuid.uuid4().hex
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


@contextmanager
def command_context(entity: str, channel: str, topic: str) -> Generator[str]:
    """
    Scope for one inbound command.

    Example:
        with command_context("thermostat", "mode_command_topic", topic) as corr_id:
            logger.info("Dispatching command")  # tagged with corr_id, entity, channel, topic
    """
    with correlation_context() as correlation_id:
        token = _command.set(MappingProxyType({"entity": entity, "channel": channel, "topic": topic}))
        try:
            yield correlation_id
        finally:
            _command.reset(token)
