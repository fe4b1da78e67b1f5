"""Logging abstraction layer for mqtt2ha.

Provides JSON and human-readable log output with correlation tracking and
structured context. Entities accept any object with the same debug/info/
warning/error/exception methods (taking an ``extra`` mapping) in place of
the default logger, a stdlib ``logging.Logger`` included.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol, cast, override

from mqtt2ha.correlation import get_command_context, get_correlation_id

__all__ = [
    "HumanReadableFormatter",
    "JSONFormatter",
    "LoggerProtocol",
    "Mqtt2HALogger",
    "get_logger",
    "record_context",
]


class LoggerProtocol(Protocol):
    """Minimal logger surface used by entities, routers and connections.

    ``extra`` is structured context for the line (topic, client id, ...).
    """

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None: ...

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None: ...

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None: ...

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None: ...

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None: ...


def record_context(record: logging.LogRecord) -> dict[str, object]:
    """The command being handled (entity/channel/topic) overlaid with the record's ``extra``."""
    context: dict[str, object] = dict(get_command_context())
    extra_data = getattr(record, "extra_data", None)
    if isinstance(extra_data, Mapping):
        context.update(cast("Mapping[str, object]", extra_data))
    return context


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        context = record_context(record)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """One line per record: timestamp, level, location, short correlation id, message, context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id = get_correlation_id()
        record.correlation_id = f"[{correlation_id[:8]}]" if correlation_id else "[--------]"

        formatted = super().format(record)
        context = record_context(record)
        if not context:
            return formatted
        return formatted + " | " + " | ".join(f"{k}={v}" for k, v in context.items())


class Mqtt2HALogger:
    """Logger wrapper providing JSON and/or human-readable output.

    Structured context passed through ``extra=`` is appended to human output
    and nested under "context" in JSON output.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stderr",
    ) -> None:
        """Initialize Mqtt2HALogger.

        Args:
            name: Logger name (typically module name)
            log_format: Output format - "json", "human", or "both"
            json_file: Path for JSON output file (None to disable file output)
            human_output: "stdout", "stderr", or file path for human-readable output

        """
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        self.log_format: str = log_format

        from mqtt2ha.const import MQTT2HA_DEBUG

        self.logger.setLevel(logging.DEBUG if MQTT2HA_DEBUG else logging.INFO)

        if not self.logger.handlers:
            self._configure_handlers(json_file, human_output)

    def _configure_handlers(self, json_file: str | Path | None, human_output: str | None) -> None:
        handler_level = self.logger.level

        if self.log_format in ("json", "both") and json_file:
            try:
                json_path = Path(json_file)
                json_path.parent.mkdir(parents=True, exist_ok=True)
                json_handler = logging.FileHandler(json_path, mode="a")
                json_handler.setFormatter(JSONFormatter())
                json_handler.setLevel(handler_level)
                self.logger.addHandler(json_handler)
            except OSError as e:
                print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)

        if self.log_format in ("human", "both"):
            normalized_output = human_output or "stderr"
            if normalized_output == "stdout":
                human_handler: logging.Handler = logging.StreamHandler(sys.stdout)
            elif normalized_output == "stderr":
                human_handler = logging.StreamHandler(sys.stderr)
            else:
                try:
                    human_path = Path(normalized_output)
                    human_path.parent.mkdir(parents=True, exist_ok=True)
                    human_handler = logging.FileHandler(human_path, mode="a")
                except OSError as e:
                    print(f"Warning: Failed to create human log file {human_output}: {e}", file=sys.stderr)
                    human_handler = logging.StreamHandler(sys.stderr)

            human_handler.setFormatter(HumanReadableFormatter())
            human_handler.setLevel(handler_level)
            self.logger.addHandler(human_handler)

    def _log(
        self,
        level: int,
        msg: str,
        *args: object,
        extra: Mapping[str, object] | None = None,
        exc_info: bool = False,
    ) -> None:
        # stacklevel 3 points %(module)s/%(lineno)d at our caller, not this wrapper
        self.logger.log(
            level,
            msg,
            *args,
            extra={"extra_data": dict(extra)} if extra else None,
            exc_info=exc_info,
            stacklevel=3,
        )

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.ERROR, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at error level with the current exception's traceback."""
        self._log(logging.ERROR, msg, *args, extra=extra, exc_info=True)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> Mqtt2HALogger:
    """Get or create a Mqtt2HALogger instance.

    Args:
        name: Logger name
        log_format: Override default format ("json", "human", or "both")
        json_file: Override default JSON output file
        human_output: Override default human-readable output

    """
    from mqtt2ha.const import (
        MQTT2HA_LOG_FORMAT,
        MQTT2HA_LOG_HUMAN_OUTPUT,
        MQTT2HA_LOG_JSON_FILE,
    )

    return Mqtt2HALogger(
        name=name,
        log_format=log_format or MQTT2HA_LOG_FORMAT,
        json_file=json_file or MQTT2HA_LOG_JSON_FILE,
        human_output=human_output or MQTT2HA_LOG_HUMAN_OUTPUT,
    )
