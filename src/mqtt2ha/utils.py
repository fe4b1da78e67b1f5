"""Utility helpers for topic segments, payload encoding and callbacks."""

from __future__ import annotations

import inspect
import json
import re
from collections.abc import Awaitable
from typing import cast

_INVALID_TOPIC_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def clean_string(raw: str) -> str:
    """Return a string that is safe to use as a single MQTT topic segment.

    Every character that is not alphanumeric, underscore or hyphen becomes a
    hyphen, so the result never contains '/', '+' or '#'.

        clean_string("Living Room/Temp")  # "Living-Room-Temp"
        clean_string("Sensor#1")  # "Sensor-1"
    """
    return _INVALID_TOPIC_CHARS.sub("-", raw)


def encode_state(value: object) -> str:
    """Serialize a state value: strings pass through, anything else is JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


async def await_if_needed(result: object) -> None:
    """Await result if it is awaitable-like."""
    if result is None:
        return
    if inspect.isawaitable(result):
        await cast(Awaitable[object], result)
