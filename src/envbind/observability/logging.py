"""Opt-in structured logging for the ``envbind`` logger namespace, with redaction."""

from __future__ import annotations

import json
import logging
import math
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Final, Literal, TextIO

from envbind.constants import LOGGER_NAME, REDACTED_VALUE
from envbind.security.redaction import is_sensitive_key, redact_text

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
LogRedactor = Callable[[JSONValue], JSONValue]

_TEXT_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Where and how ``envbind`` log records are emitted."""

    level: int | str = "INFO"
    log_format: Literal["json", "text"] = "json"
    logger_name: str = LOGGER_NAME
    stream: TextIO | None = field(default=None, compare=False)
    redactor: LogRedactor | None = field(default=None, compare=False)


class _JsonLineFormatter(logging.Formatter):
    """Formatter that emits one canonical JSON object per record."""

    def __init__(self, *, redactor: LogRedactor) -> None:
        super().__init__()
        self._redactor = redactor

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": _coerce_log_message(
                self._redactor(_normalize_json_value(record.getMessage()))
            ),
        }

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = self._redactor(_normalize_json_value(extras))

        if record.exc_info is not None:
            event["exception"] = _coerce_log_message(
                self._redactor(_normalize_json_value(self.formatException(record.exc_info)))
            )

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class StructuredLoggingHandle:
    """Handle for one installed handler; ``shutdown`` detaches it again."""

    def __init__(
        self, *, logger: logging.Logger, handler: logging.Handler, previous_level: int
    ) -> None:
        self.logger = logger
        self.handler = handler
        self._previous_level = previous_level
        self._is_shutdown = False

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    def shutdown(self) -> None:
        if self._is_shutdown:
            return
        self.handler.flush()
        self.logger.removeHandler(self.handler)
        self.handler.close()
        self.logger.setLevel(self._previous_level)
        self._is_shutdown = True


def setup_logging(config: LoggingConfig | None = None) -> StructuredLoggingHandle:
    """Attach a stream handler to the ``envbind`` logger.

    Libraries never configure logging on import; applications call this when
    they want binding decisions (at DEBUG) or failures (at CRITICAL) emitted.
    """

    cfg = config or LoggingConfig()
    level = _parse_log_level(cfg.level)

    formatter: logging.Formatter
    if cfg.log_format == "json":
        redactor = cfg.redactor if cfg.redactor is not None else default_log_redactor
        formatter = _JsonLineFormatter(redactor=redactor)
    elif cfg.log_format == "text":
        formatter = logging.Formatter(_TEXT_FORMAT)
    else:
        raise ValueError(f"unsupported log_format {cfg.log_format!r}")

    handler = logging.StreamHandler(cfg.stream if cfg.stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)

    logger = logging.getLogger(cfg.logger_name)
    previous_level = logger.level
    logger.setLevel(level)
    logger.addHandler(handler)
    return StructuredLoggingHandle(logger=logger, handler=handler, previous_level=previous_level)


def default_log_redactor(value: JSONValue) -> JSONValue:
    """Deep redaction of sensitive keys and ``secret=value`` text."""
    return _redact_value(value, key_context=None)


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _coerce_log_message(value: JSONValue) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS or key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _normalize_json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _normalize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    return repr(value)


def _redact_value(value: JSONValue, *, key_context: str | None) -> JSONValue:
    if key_context is not None and is_sensitive_key(key_context):
        return REDACTED_VALUE

    if isinstance(value, str):
        return redact_text(value)

    if isinstance(value, list):
        return [_redact_value(item, key_context=None) for item in value]

    if isinstance(value, dict):
        # Resolver records name the env key separately from the value.
        value_key = value.get("key")
        if isinstance(value_key, str) and is_sensitive_key(value_key) and "value" in value:
            value = {**value, "value": REDACTED_VALUE}
        return {key: _redact_value(item, key_context=key) for key, item in value.items()}

    return value


__all__ = [
    "JSONScalar",
    "JSONValue",
    "LogRedactor",
    "LoggingConfig",
    "StructuredLoggingHandle",
    "default_log_redactor",
    "setup_logging",
]
